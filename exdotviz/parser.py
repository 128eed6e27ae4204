"""Elixir front-end parser built on Tree-sitter.

Parses source text with the tree-sitter Elixir grammar and lowers the
concrete syntax tree into the generic :class:`~exdotviz.syntax.SyntaxNode`
tree the extractor works on.  Only the shapes the extractor cares about get a
dedicated kind; everything else becomes a ``container`` (descended) or a
``literal`` (not descended).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Union

from . import syntax
from .syntax import SyntaxNode

logger = logging.getLogger(__name__)

LANGUAGE = "elixir"

# Tree-sitter node types lowered to a transparent block.
_BLOCK_TYPES = {
    "source", "block", "body", "do_block", "else_block", "after_block",
    "rescue_block", "catch_block",
}

# Leaves the extractor never looks inside.
_LITERAL_TYPES = {
    "integer", "float", "char", "boolean", "nil", "quoted_content",
    "escape_sequence", "operator_identifier",
    "keyword", "quoted_keyword",
}

_SKIPPED_TYPES = {"comment"}


class ParseFailure(Exception):
    """Raised when a source unit is not syntactically valid."""

    def __init__(self, file: str, reason: str = "syntax error") -> None:
        super().__init__(f"{file}: {reason}")
        self.file = file
        self.reason = reason


class Parser(ABC):
    """Abstract front-end: source text in, generic syntax tree out."""

    @abstractmethod
    def parse(self, source: Union[str, bytes], file: str = "nofile") -> SyntaxNode:
        """Parse ``source``; raise :class:`ParseFailure` on malformed input."""
        ...

    def parse_file(self, file_path: Path) -> SyntaxNode:
        """Read and parse one file.  ``OSError`` propagates to the caller."""
        return self.parse(file_path.read_bytes(), str(file_path))


class TreeSitterElixirParser(Parser):
    """Parser backed by the tree-sitter Elixir grammar.

    Grammars come pre-built from ``tree-sitter-language-pack`` so setup is
    zero-config.  A tree-sitter ``Parser`` is not safe to share between
    threads; create one instance per worker.
    """

    def __init__(self) -> None:
        self._parser = self._init_parser()

    @staticmethod
    def _init_parser() -> Any:
        try:
            from tree_sitter import Parser as TSParser  # type: ignore[import-untyped]
            from tree_sitter_language_pack import get_language  # type: ignore[import-untyped]
        except ImportError as exc:
            raise RuntimeError(
                "tree-sitter is not installed. "
                "Install with: pip install tree-sitter tree-sitter-language-pack"
            ) from exc

        parser = TSParser(get_language(LANGUAGE))
        logger.debug("Loaded tree-sitter parser for %s", LANGUAGE)
        return parser

    def parse(self, source: Union[str, bytes], file: str = "nofile") -> SyntaxNode:
        source_bytes = source.encode("utf-8") if isinstance(source, str) else source
        tree = self._parser.parse(source_bytes)
        root = tree.root_node
        if root.has_error:
            raise ParseFailure(file, f"syntax error near line {_first_error_line(root)}")
        return _lower(root) or syntax.block()


# ===================================================================
# Lowering: tree-sitter CST -> SyntaxNode
# ===================================================================

def _text(ts_node: Any) -> str:
    return ts_node.text.decode("utf-8")


def _position(ts_node: Any) -> dict:
    row, column = ts_node.start_point[0], ts_node.start_point[1]
    return {"line": row + 1, "column": column}


def _lower_children(ts_node: Any) -> List[SyntaxNode]:
    lowered = (_lower(child) for child in ts_node.named_children)
    return [n for n in lowered if n is not None]


def _lower(ts_node: Any) -> Optional[SyntaxNode]:
    kind = ts_node.type
    pos = _position(ts_node)

    if kind in _SKIPPED_TYPES:
        return None
    if kind in _BLOCK_TYPES:
        return SyntaxNode(syntax.BLOCK, children=tuple(_lower_children(ts_node)), **pos)
    if kind == "call":
        return _lower_call(ts_node)
    if kind == "alias":
        return _lower_alias(ts_node)
    if kind == "identifier":
        name = _text(ts_node)
        if name == "__MODULE__":
            return SyntaxNode(syntax.SELF_REF, name, **pos)
        return SyntaxNode(syntax.VAR, name, **pos)
    if kind in ("atom", "quoted_atom"):
        name = _text(ts_node).lstrip(":").strip("\"'")
        return SyntaxNode(syntax.ATOM, name, **pos)
    if kind == "dot":
        return _lower_dot(ts_node)
    if kind == "keywords":
        return SyntaxNode(syntax.KEYWORDS, children=tuple(_lower_children(ts_node)), **pos)
    if kind == "pair":
        return _lower_pair(ts_node)
    if kind == "unary_operator":
        return _lower_unary(ts_node)
    if kind == "binary_operator":
        operator = ts_node.child_by_field_name("operator")
        return SyntaxNode(
            syntax.OPERATOR,
            _text(operator) if operator is not None else None,
            tuple(_lower_children(ts_node)),
            **pos,
        )
    if kind in _LITERAL_TYPES:
        return SyntaxNode(syntax.LITERAL, _text(ts_node), **pos)

    children = _lower_children(ts_node)
    if children:
        return SyntaxNode(syntax.CONTAINER, kind, tuple(children), **pos)
    return SyntaxNode(syntax.LITERAL, _text(ts_node), **pos)


def _lower_alias(ts_node: Any) -> SyntaxNode:
    parts = [p.strip() for p in _text(ts_node).split(".") if p.strip()]
    return SyntaxNode(
        syntax.ALIASES,
        children=tuple(SyntaxNode(syntax.SEGMENT, p) for p in parts),
        **_position(ts_node),
    )


def _lower_dot(ts_node: Any) -> SyntaxNode:
    """``left.Right`` (alias extension) or ``left.{A, B}`` (multi-alias)."""
    pos = _position(ts_node)
    left = ts_node.child_by_field_name("left")
    right = ts_node.child_by_field_name("right")
    lowered_left = _lower(left) if left is not None else None

    if right is not None and right.type == "tuple" and lowered_left is not None:
        return SyntaxNode(
            syntax.MULTI_ALIAS,
            children=(lowered_left,) + tuple(_lower_children(right)),
            **pos,
        )
    if right is not None and right.type == "alias" and lowered_left is not None:
        tail = _lower_alias(right).children
        if lowered_left.kind == syntax.ALIASES:
            return SyntaxNode(syntax.ALIASES, children=lowered_left.children + tail, **pos)
        return SyntaxNode(syntax.ALIASES, children=(lowered_left,) + tail, **pos)
    return SyntaxNode(syntax.CONTAINER, "dot", tuple(_lower_children(ts_node)), **pos)


def _lower_pair(ts_node: Any) -> SyntaxNode:
    key = ts_node.child_by_field_name("key")
    value = ts_node.child_by_field_name("value")
    key_text = _text(key).strip().rstrip(":").strip() if key is not None else None
    lowered = _lower(value) if value is not None else None
    return SyntaxNode(
        syntax.PAIR,
        key_text,
        (lowered,) if lowered is not None else (),
        **_position(ts_node),
    )


def _lower_unary(ts_node: Any) -> SyntaxNode:
    pos = _position(ts_node)
    operator = ts_node.child_by_field_name("operator")
    op_text = _text(operator) if operator is not None else None
    if op_text == "@":
        # Module attributes are metadata, never call sites.
        return SyntaxNode(syntax.ATTRIBUTE, _text(ts_node), **pos)
    return SyntaxNode(syntax.OPERATOR, op_text, tuple(_lower_children(ts_node)), **pos)


def _lower_call(ts_node: Any) -> SyntaxNode:
    pos = _position(ts_node)
    target = ts_node.child_by_field_name("target")
    arguments = ts_node.child_by_field_name("arguments")

    args: List[SyntaxNode] = _lower_children(arguments) if arguments is not None else []
    for child in ts_node.children:
        if child.type == "do_block":
            args.append(SyntaxNode(
                syntax.KEYWORDS,
                children=(SyntaxNode(syntax.PAIR, "do", (_lower(child) or syntax.block(),)),),
                **_position(child),
            ))

    if target is not None and target.type == "identifier":
        return SyntaxNode(syntax.CALL, _text(target), tuple(args), **pos)

    if target is not None and target.type == "dot":
        left = target.child_by_field_name("left")
        right = target.child_by_field_name("right")
        if left is not None and right is not None:
            lowered_left = _lower(left) or SyntaxNode(syntax.LITERAL, _text(left))
            member = _text(right).strip("\"'")
            return SyntaxNode(syntax.REMOTE_CALL, member, (lowered_left,) + tuple(args), **pos)

    # Anonymous function calls (``fun.(x)``) and other dynamic heads.
    head = _lower(target) if target is not None else None
    children = ([head] if head is not None else []) + args
    return SyntaxNode(syntax.CONTAINER, "call", tuple(children), **pos)


def _first_error_line(root: Any) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return root.start_point[0] + 1
