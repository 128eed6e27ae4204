"""Alias resolution for module references.

An alias table maps a short name (one segment, e.g. ``"Repo"``) to the fully
qualified module it stands for (``MyApp.Repo``).  One table exists per module
body; the extractor owns it through an :class:`AliasScope`.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from . import syntax
from .models import UNKNOWN, QualifiedName
from .syntax import SyntaxNode

logger = logging.getLogger(__name__)

AliasTable = Dict[str, QualifiedName]


def resolve(ref: SyntaxNode, current: QualifiedName, table: AliasTable) -> QualifiedName:
    """Resolve a module reference to a qualified name, or ``UNKNOWN``."""
    if ref.kind == syntax.ALIASES:
        return _resolve_segments(ref.children, current, table)
    if ref.kind == syntax.SELF_REF:
        return current
    if ref.kind == syntax.ATOM and ref.value:
        return QualifiedName((f":{ref.value}",))
    unquoted = _unquoted(ref)
    if unquoted is not None:
        return resolve(unquoted, current, table)
    return UNKNOWN


def _resolve_segments(
    parts: Tuple[SyntaxNode, ...],
    current: QualifiedName,
    table: AliasTable,
) -> QualifiedName:
    if not parts:
        return UNKNOWN

    head, rest = parts[0], parts[1:]
    if head.kind == syntax.SEGMENT and head.value:
        expanded = table.get(head.value)
        resolved: List[str] = list(expanded.segments) if expanded else [head.value]
    else:
        base = _resolve_part(head, current, table)
        if base.is_unknown:
            return UNKNOWN
        resolved = list(base.segments)

    for part in rest:
        if part.kind == syntax.SEGMENT and part.value:
            resolved.append(part.value)
            continue
        tail = _resolve_part(part, current, table)
        if tail.is_unknown:
            return UNKNOWN
        resolved.extend(tail.segments)
    return QualifiedName(tuple(resolved))


def _resolve_part(part: SyntaxNode, current: QualifiedName, table: AliasTable) -> QualifiedName:
    if part.kind == syntax.SELF_REF:
        return current
    unquoted = _unquoted(part)
    if unquoted is not None:
        if unquoted.kind == syntax.ATOM and unquoted.value:
            return QualifiedName((unquoted.value,))
        return resolve(unquoted, current, table)
    return UNKNOWN


def _unquoted(node: SyntaxNode) -> Optional[SyntaxNode]:
    if node.kind == syntax.CALL and node.value == "unquote" and len(node.children) == 1:
        return node.children[0]
    return None


# ---------------------------------------------------------------------------
# Table updates
# ---------------------------------------------------------------------------

def alias_pairs(
    target_ref: SyntaxNode,
    current: QualifiedName,
    table: AliasTable,
) -> List[Tuple[str, QualifiedName]]:
    """Return the ``(short, full)`` pairs an ``alias`` target introduces.

    A multi-target alias whose base does not resolve introduces nothing.
    """
    if target_ref.kind == syntax.MULTI_ALIAS:
        return _multi_alias_pairs(target_ref, current, table)
    resolved = resolve(target_ref, current, table)
    if resolved.is_unknown:
        return []
    return [(resolved.last, resolved)]


def _multi_alias_pairs(
    node: SyntaxNode,
    current: QualifiedName,
    table: AliasTable,
) -> List[Tuple[str, QualifiedName]]:
    base = resolve(node.children[0], current, table)
    if base.is_unknown:
        return []
    pairs: List[Tuple[str, QualifiedName]] = []
    for child in node.children[1:]:
        if child.kind != syntax.ALIASES:
            continue
        if not all(p.kind == syntax.SEGMENT and p.value for p in child.children):
            continue
        segments = tuple(p.value for p in child.children)
        pairs.append((segments[-1], base.concat(*segments)))
    return pairs


def multi_alias_targets(
    node: SyntaxNode,
    current: QualifiedName,
    table: AliasTable,
) -> List[QualifiedName]:
    """Targets named by ``alias Base.{A, B}``; ``[UNKNOWN]`` if the base is unresolved."""
    pairs = _multi_alias_pairs(node, current, table)
    if not pairs:
        return [UNKNOWN]
    return [full for _, full in pairs]


def update(
    table: AliasTable,
    target_ref: SyntaxNode,
    current: QualifiedName,
    rename: Optional[SyntaxNode] = None,
) -> None:
    """Apply one ``alias`` directive to ``table`` in place.

    ``rename`` is the ``as:`` option value, if any.  It takes effect only when
    it is a single literal segment and the target resolved; otherwise the
    directive falls back to the plain single-target rule.
    """
    if rename is not None:
        target = resolve(target_ref, current, table)
        short = _single_segment(rename)
        if short is not None and not target.is_unknown:
            table[short] = target
            return

    for short, full in alias_pairs(target_ref, current, table):
        table[short] = full


def _single_segment(node: SyntaxNode) -> Optional[str]:
    if node.kind != syntax.ALIASES or len(node.children) != 1:
        return None
    part = node.children[0]
    if part.kind == syntax.SEGMENT and part.value:
        return part.value
    return None


class AliasScope:
    """Alias table plus the module it belongs to, owned by one traversal."""

    def __init__(self, module: QualifiedName, table: Optional[AliasTable] = None) -> None:
        self.module = module
        self.table: AliasTable = dict(table) if table else {}

    def resolve(self, ref: SyntaxNode) -> QualifiedName:
        return resolve(ref, self.module, self.table)

    def alias(self, target_ref: SyntaxNode, rename: Optional[SyntaxNode] = None) -> None:
        update(self.table, target_ref, self.module, rename)
        logger.debug("alias table for %s: %s", self.module, self.table)

    def copy(self) -> "AliasScope":
        return AliasScope(self.module, self.table)
