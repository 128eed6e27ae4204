"""DOT export of module, call, and module-level call graphs.

Every renderer accepts a ``prune`` collection of qualified module names.
Pruning is exact-match and only affects the rendered text: pruned module
nodes, call nodes belonging to pruned modules, and every edge touching
either are left out.
"""

from __future__ import annotations

from pathlib import Path
from typing import Collection, Iterable, List, Optional

from .models import LOCAL, MFA, GraphSet, QualifiedName


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _module_id(name: QualifiedName) -> str:
    return f'"m:{_esc(str(name))}"'


def _call_id(mfa: MFA) -> str:
    return f'"c:{_esc(str(mfa))}"'


def parse_prune(value: Optional[str]) -> List[str]:
    """Split a comma-separated prune option, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _pruned(prune: Optional[Iterable[str]]) -> Collection[str]:
    return frozenset(prune or ())


def _document(name: str, body: List[str]) -> str:
    return "\n".join([f"digraph {name} {{", "  rankdir=LR;"] + body + ["}"])


def module_graph(graphs: GraphSet, prune: Optional[Iterable[str]] = None) -> str:
    """Module dependency graph; edges are labelled with their kind."""
    pruned = _pruned(prune)
    lines: List[str] = []
    for module in graphs.modules:
        if str(module.name) in pruned:
            continue
        lines.append(f'  {_module_id(module.name)} [label="{_esc(str(module.name))}"];')
    for edge in graphs.module_edges:
        if str(edge.src) in pruned or str(edge.dst) in pruned:
            continue
        lines.append(
            f'  {_module_id(edge.src)} -> {_module_id(edge.dst)} [label="{_esc(edge.kind)}"];'
        )
    return _document("modules", lines)


def call_graph(graphs: GraphSet, prune: Optional[Iterable[str]] = None) -> str:
    """Function-level call graph; local calls solid, remote calls dashed."""
    pruned = _pruned(prune)
    lines: List[str] = []
    for node in graphs.call_nodes:
        if str(node.mfa.module) in pruned:
            continue
        lines.append(f'  {_call_id(node.mfa)} [label="{_esc(str(node.mfa))}"];')
    for edge in graphs.call_edges:
        if str(edge.src.module) in pruned or str(edge.dst.module) in pruned:
            continue
        style = "solid" if edge.kind == LOCAL else "dashed"
        lines.append(f"  {_call_id(edge.src)} -> {_call_id(edge.dst)} [style={style}];")
    return _document("calls", lines)


def module_call_graph(graphs: GraphSet, prune: Optional[Iterable[str]] = None) -> str:
    """Module-level call graph aggregated from function calls."""
    pruned = _pruned(prune)
    lines: List[str] = []
    for module in graphs.modules:
        if str(module.name) in pruned:
            continue
        lines.append(f'  {_module_id(module.name)} [label="{_esc(str(module.name))}"];')
    for edge in graphs.module_call_edges:
        if str(edge.src) in pruned or str(edge.dst) in pruned:
            continue
        lines.append(f"  {_module_id(edge.src)} -> {_module_id(edge.dst)};")
    return _document("module_calls", lines)


def combined_graph(graphs: GraphSet, prune: Optional[Iterable[str]] = None) -> str:
    """Module-level call graph followed by the function-level call graph."""
    return (
        module_call_graph(graphs, prune)
        + "\n\n// Function-level call graph\n"
        + call_graph(graphs, prune)
    )


def export_dot(graphs: GraphSet, output_file: Path, graph: str = "both",
               prune: Optional[Iterable[str]] = None) -> None:
    renderers = {
        "modules": module_graph,
        "calls": call_graph,
        "module_calls": module_call_graph,
        "both": combined_graph,
    }
    output_file.write_text(renderers[graph](graphs, prune), encoding="utf-8")
