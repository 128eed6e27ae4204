"""Builds module dependency and call graphs from module records."""

from __future__ import annotations

import logging
from typing import Dict, Hashable, Iterable, List, Set, Tuple, TypeVar

from .models import (
    CALL,
    MFA,
    CallEdge,
    CallNode,
    GraphSet,
    ModuleCallEdge,
    ModuleEdge,
    ModuleNode,
    ModuleRecord,
    QualifiedName,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)


def _unique(items: Iterable[T]) -> List[T]:
    """Drop repeats, keeping the first occurrence of each item in order."""
    seen: Set[T] = set()
    result: List[T] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def build_graphs(records: List[ModuleRecord], internal_only: bool = False) -> GraphSet:
    """Fold module records into the five graph artifacts.

    Records are never merged: two records sharing a module name yield two
    module nodes, each with its own file and function set.
    """
    modules = [
        ModuleNode(name=r.name, file=r.file, functions=tuple(r.functions))
        for r in records
    ]

    module_edges = _unique(
        edge for record in records for edge in _module_edges_for(record)
    )

    call_node_set: Set[MFA] = set()
    call_edges: List[CallEdge] = []
    for record in records:
        for fn in record.functions:
            call_node_set.add(MFA(record.name, fn.name, fn.arity))
        for site in record.calls:
            call_edges.append(CallEdge(src=site.src, dst=site.dst, kind=site.kind))
    call_nodes = [CallNode(mfa=mfa) for mfa in sorted(call_node_set)]

    module_call_edges = _unique(
        edge for record in records for edge in _module_call_edges_for(record)
    )

    graphs = GraphSet(
        modules=modules,
        module_edges=module_edges,
        call_nodes=call_nodes,
        call_edges=call_edges,
        module_call_edges=module_call_edges,
    )
    logger.info("Built graphs: %s", graphs.stats())

    if internal_only:
        graphs = filter_internal(graphs)
    return graphs


def _module_edges_for(record: ModuleRecord) -> List[ModuleEdge]:
    pairs: List[Tuple[QualifiedName, str]] = [(site.dst.module, CALL) for site in record.calls]
    pairs.extend((ref.target, ref.kind) for ref in record.refs)
    return [
        ModuleEdge(src=record.name, dst=target, kind=kind)
        for target, kind in pairs
        if not target.is_unknown and target != record.name
    ]


def _module_call_edges_for(record: ModuleRecord) -> List[ModuleCallEdge]:
    return _unique(
        ModuleCallEdge(src=record.name, dst=site.dst.module)
        for site in record.calls
        if site.dst.module != record.name
    )


def filter_internal(graphs: GraphSet) -> GraphSet:
    """Restrict graphs to modules that were actually scanned.

    Exactly two passes: edges with an endpoint outside the known module set
    are dropped first, then call nodes no surviving call edge touches.
    """
    known = graphs.known_modules()

    module_edges = [e for e in graphs.module_edges if e.src in known and e.dst in known]
    module_call_edges = [
        e for e in graphs.module_call_edges if e.src in known and e.dst in known
    ]
    call_edges = [
        e for e in graphs.call_edges
        if e.src.module in known and e.dst.module in known
    ]

    endpoints: Set[MFA] = set()
    for edge in call_edges:
        endpoints.add(edge.src)
        endpoints.add(edge.dst)
    call_nodes = [n for n in graphs.call_nodes if n.mfa in endpoints]

    dropped: Dict[str, int] = {
        "module_edges": len(graphs.module_edges) - len(module_edges),
        "module_call_edges": len(graphs.module_call_edges) - len(module_call_edges),
        "call_edges": len(graphs.call_edges) - len(call_edges),
        "call_nodes": len(graphs.call_nodes) - len(call_nodes),
    }
    logger.debug("Internal-only filter dropped %s", dropped)

    return GraphSet(
        modules=list(graphs.modules),
        module_edges=module_edges,
        call_nodes=call_nodes,
        call_edges=call_edges,
        module_call_edges=module_call_edges,
    )
