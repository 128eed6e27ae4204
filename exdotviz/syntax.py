"""Generic tagged syntax tree consumed by the extractor.

The front-end parser lowers the concrete tree-sitter tree into these nodes so
the extractor never depends on grammar details.  Each node has a kind tag, an
optional scalar ``value`` (a name, key, or operator), source position, and an
ordered tuple of children.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

# Node kinds
BLOCK = "block"
CALL = "call"
REMOTE_CALL = "remote_call"
ALIASES = "aliases"
SEGMENT = "segment"
SELF_REF = "self_ref"
MULTI_ALIAS = "multi_alias"
ATOM = "atom"
VAR = "var"
KEYWORDS = "keywords"
PAIR = "pair"
LITERAL = "literal"
ATTRIBUTE = "attribute"
OPERATOR = "operator"
CONTAINER = "container"

# Kinds whose children are traversed without contributing anything themselves.
TRANSPARENT_KINDS = frozenset({BLOCK, KEYWORDS, PAIR, OPERATOR, CONTAINER})


@dataclass(frozen=True)
class SyntaxNode:
    kind: str
    value: Optional[str] = None
    children: Tuple["SyntaxNode", ...] = ()
    line: int = 0
    column: int = 0

    def walk(self) -> Iterator["SyntaxNode"]:
        """Yield this node and all descendants in depth-first pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def keyword(self, key: str) -> Optional["SyntaxNode"]:
        """Return the value of ``key`` if this is a ``keywords`` node holding it."""
        if self.kind != KEYWORDS:
            return None
        for pair in self.children:
            if pair.kind == PAIR and pair.value == key and pair.children:
                return pair.children[0]
        return None


# ---------------------------------------------------------------------------
# Builders (used by the tree-sitter lowering and by tests)
# ---------------------------------------------------------------------------

def block(*children: SyntaxNode) -> SyntaxNode:
    return SyntaxNode(BLOCK, children=tuple(children))


def aliases(dotted: str) -> SyntaxNode:
    """``aliases("Foo.Bar")`` builds the literal reference ``Foo.Bar``."""
    return SyntaxNode(
        ALIASES,
        children=tuple(SyntaxNode(SEGMENT, part) for part in dotted.split(".")),
    )


def self_ref() -> SyntaxNode:
    return SyntaxNode(SELF_REF, "__MODULE__")


def var(name: str) -> SyntaxNode:
    return SyntaxNode(VAR, name)


def atom(name: str) -> SyntaxNode:
    return SyntaxNode(ATOM, name)


def literal(text: str) -> SyntaxNode:
    return SyntaxNode(LITERAL, text)


def keywords(*pairs: Tuple[str, SyntaxNode]) -> SyntaxNode:
    return SyntaxNode(
        KEYWORDS,
        children=tuple(SyntaxNode(PAIR, key, (value,)) for key, value in pairs),
    )


def call(name: str, *args: SyntaxNode, do: Optional[SyntaxNode] = None) -> SyntaxNode:
    children = list(args)
    if do is not None:
        children.append(keywords(("do", do)))
    return SyntaxNode(CALL, name, tuple(children))


def remote_call(target: SyntaxNode, member: str, *args: SyntaxNode) -> SyntaxNode:
    return SyntaxNode(REMOTE_CALL, member, (target,) + tuple(args))


def multi_alias(base: SyntaxNode, *targets: SyntaxNode) -> SyntaxNode:
    return SyntaxNode(MULTI_ALIAS, children=(base,) + tuple(targets))


def defmodule(name: SyntaxNode, *body: SyntaxNode) -> SyntaxNode:
    return call("defmodule", name, do=block(*body))


def def_(name: str, params: Tuple[str, ...] = (), *body: SyntaxNode, kind: str = "def") -> SyntaxNode:
    head = call(name, *(var(p) for p in params)) if params else var(name)
    return call(kind, head, do=block(*body))
