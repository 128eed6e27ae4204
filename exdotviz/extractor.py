"""Module extraction: walks a lowered syntax tree and emits module records.

The walk is a single depth-first pre-order traversal per module body.  Each
node is first classified into one of a closed set of constructs and then
dispatched; unrecognized nodes contribute nothing and are only descended when
they are transparent wrappers (blocks, operators, literal containers).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple

from . import syntax
from .aliases import AliasScope, multi_alias_targets, resolve
from .models import (
    ALIAS,
    IMPORT,
    LOCAL,
    MFA,
    REMOTE,
    UNKNOWN,
    USE,
    CallSite,
    FunctionSignature,
    ModuleRecord,
    QualifiedName,
    ReferenceDirective,
)
from .syntax import SyntaxNode

logger = logging.getLogger(__name__)

MODULE_KEYWORD = "defmodule"
DEFINITION_KEYWORDS = frozenset({"def", "defp", "defmacro", "defmacrop"})
DIRECTIVE_KEYWORDS = {"alias": ALIAS, "import": IMPORT, "use": USE}

# Language forms that look like local calls but are not functions of the module.
SPECIAL_FORMS = frozenset({
    "case", "cond", "if", "unless", "with", "for", "try", "receive",
    "quote", "unquote", "unquote_splicing", "require", "fn", "super",
    "__block__",
})


class Construct(Enum):
    MODULE_DEF = "module_def"
    FUNCTION_DEF = "function_def"
    REMOTE_CALL = "remote_call"
    LOCAL_CALL = "local_call"
    DIRECTIVE = "directive"
    SPECIAL_FORM = "special_form"
    TRANSPARENT = "transparent"
    OTHER = "other"


def classify(node: SyntaxNode) -> Construct:
    if node.kind == syntax.REMOTE_CALL:
        return Construct.REMOTE_CALL
    if node.kind == syntax.CALL:
        name = node.value or ""
        if name == MODULE_KEYWORD and len(node.children) >= 1:
            return Construct.MODULE_DEF
        if name in DEFINITION_KEYWORDS:
            return Construct.FUNCTION_DEF if function_head(node) else Construct.OTHER
        if name in DIRECTIVE_KEYWORDS:
            return Construct.DIRECTIVE if node.children else Construct.OTHER
        if name in SPECIAL_FORMS or name == MODULE_KEYWORD:
            return Construct.SPECIAL_FORM
        return Construct.LOCAL_CALL
    if node.kind in syntax.TRANSPARENT_KINDS:
        return Construct.TRANSPARENT
    return Construct.OTHER


def function_head(node: SyntaxNode) -> Optional[FunctionSignature]:
    """Return ``(name, arity)`` of a ``def``-style node, or None if not literal."""
    if not node.children:
        return None
    head = node.children[0]
    if head.kind == syntax.OPERATOR and head.value == "when" and head.children:
        head = head.children[0]
    if head.kind == syntax.VAR and head.value:
        return FunctionSignature(head.value, 0)
    if head.kind == syntax.CALL and head.value and head.value != "unquote":
        return FunctionSignature(head.value, len(head.children))
    return None


def _bodies(node: SyntaxNode) -> Tuple[SyntaxNode, ...]:
    """Everything after the head of a ``defmodule``/``def`` call."""
    return node.children[1:]


@dataclass
class _Accumulator:
    functions: Set[FunctionSignature] = field(default_factory=set)
    calls: List[CallSite] = field(default_factory=list)
    refs: List[ReferenceDirective] = field(default_factory=list)


class ModuleExtractor:
    """Extract every module defined in one file.

    ``lexical_aliases`` gives each function body its own copy of the alias
    table.  By default a single table is threaded through the whole module
    body, so aliases declared inside one function stay visible to later
    definitions.

    Nested module names are taken literally.  ``nested_names`` prefixes a
    nested ``defmodule Inner`` with the enclosing module name and aliases
    ``Inner`` in the enclosing body, as the compiler does.
    """

    def __init__(self, file: str, lexical_aliases: bool = False, nested_names: bool = False) -> None:
        self.file = file
        self.lexical_aliases = lexical_aliases
        self.nested_names = nested_names
        self.records: List[ModuleRecord] = []

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def extract(self, tree: SyntaxNode) -> List[ModuleRecord]:
        self.records = []
        self._find_modules(tree, UNKNOWN, None)
        logger.debug("%s: %d module(s)", self.file, len(self.records))
        return self.records

    def _find_modules(
        self,
        node: SyntaxNode,
        enclosing: QualifiedName,
        scope: Optional[AliasScope],
    ) -> None:
        if classify(node) is Construct.MODULE_DEF:
            self._extract_module(node, enclosing, scope)
            return
        for child in node.children:
            self._find_modules(child, enclosing, scope)

    def _extract_module(
        self,
        node: SyntaxNode,
        enclosing: QualifiedName,
        enclosing_scope: Optional[AliasScope],
    ) -> None:
        name_ref = node.children[0]
        name = resolve(name_ref, enclosing, {})
        if (
            self.nested_names
            and _is_relative(name_ref)
            and not enclosing.is_unknown
            and not name.is_unknown
        ):
            first = name.segments[0]
            name = enclosing.concat(*name.segments)
            if enclosing_scope is not None:
                enclosing_scope.table[first] = enclosing.concat(first)

        # Reserve the slot so the outer module precedes nested ones.
        index = len(self.records)
        self.records.append(ModuleRecord(name=name, file=self.file))

        acc = _Accumulator()
        scope = AliasScope(name)
        for body in _bodies(node):
            self._walk(body, scope, acc, None)

        self.records[index] = ModuleRecord(
            name=name,
            file=self.file,
            functions=sorted(acc.functions),
            calls=acc.calls,
            refs=acc.refs,
        )

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _walk(
        self,
        node: SyntaxNode,
        scope: AliasScope,
        acc: _Accumulator,
        caller: Optional[MFA],
    ) -> None:
        construct = classify(node)

        if construct is Construct.MODULE_DEF:
            self._extract_module(node, scope.module, scope)

        elif construct is Construct.FUNCTION_DEF:
            self._function(node, scope, acc)

        elif construct is Construct.DIRECTIVE:
            self._directive(node, scope, acc)

        elif construct is Construct.REMOTE_CALL:
            if caller is None:
                self._find_nested(node, scope)
                return
            target = scope.resolve(node.children[0])
            args = node.children[1:]
            acc.calls.append(CallSite(
                kind=REMOTE,
                src=caller,
                dst=MFA(target, node.value or "", len(args)),
            ))
            for child in node.children:
                self._walk(child, scope, acc, caller)

        elif construct is Construct.LOCAL_CALL:
            if caller is None:
                self._find_nested(node, scope)
                return
            acc.calls.append(CallSite(
                kind=LOCAL,
                src=caller,
                dst=MFA(scope.module, node.value or "", len(node.children)),
            ))
            for child in node.children:
                self._walk(child, scope, acc, caller)

        elif construct is Construct.SPECIAL_FORM:
            if caller is None:
                self._find_nested(node, scope)
                return
            for child in node.children:
                self._walk(child, scope, acc, caller)

        elif construct is Construct.TRANSPARENT:
            for child in node.children:
                self._walk(child, scope, acc, caller)

        # Construct.OTHER: no contribution, not descended.

    def _find_nested(self, node: SyntaxNode, scope: AliasScope) -> None:
        """Module-level call or block: no call sites, but modules inside still count."""
        for child in node.children:
            self._find_modules(child, scope.module, scope)

    def _function(self, node: SyntaxNode, scope: AliasScope, acc: _Accumulator) -> None:
        signature = function_head(node)
        if signature is None:
            return
        acc.functions.add(signature)
        caller = MFA(scope.module, signature.name, signature.arity)
        body_scope = scope.copy() if self.lexical_aliases else scope
        for body in _bodies(node):
            self._walk(body, body_scope, acc, caller)

    def _directive(self, node: SyntaxNode, scope: AliasScope, acc: _Accumulator) -> None:
        kind = DIRECTIVE_KEYWORDS[node.value or ""]
        target_ref = node.children[0]

        if target_ref.kind == syntax.MULTI_ALIAS:
            targets = multi_alias_targets(target_ref, scope.module, scope.table)
        else:
            targets = [scope.resolve(target_ref)]
        for target in targets:
            acc.refs.append(ReferenceDirective(kind=kind, target=target))

        if kind == ALIAS:
            rename = None
            if len(node.children) > 1:
                rename = node.children[1].keyword("as")
            scope.alias(target_ref, rename)


def _is_relative(name_ref: SyntaxNode) -> bool:
    return (
        name_ref.kind == syntax.ALIASES
        and bool(name_ref.children)
        and name_ref.children[0].kind == syntax.SEGMENT
    )


def extract_modules(
    tree: SyntaxNode,
    file: str,
    lexical_aliases: bool = False,
    nested_names: bool = False,
) -> List[ModuleRecord]:
    """Extract one record per ``defmodule`` found anywhere in ``tree``."""
    extractor = ModuleExtractor(file, lexical_aliases=lexical_aliases, nested_names=nested_names)
    return extractor.extract(tree)
