"""JSON encoding and decoding of graph artifacts and module records.

Keys are always emitted in sorted order so two runs over the same input
produce byte-identical documents.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .models import (
    MFA,
    CallEdge,
    CallNode,
    FunctionSignature,
    GraphSet,
    ModuleCallEdge,
    ModuleEdge,
    ModuleNode,
    ModuleRecord,
    QualifiedName,
)

GRAPH_KEYS = ("modules", "module_edges", "call_nodes", "call_edges", "module_call_edges")


def _mfa(mfa: MFA) -> List[Any]:
    return [str(mfa.module), mfa.name, mfa.arity]


def _functions(functions: Iterable[FunctionSignature]) -> List[Dict[str, Any]]:
    return [{"name": f.name, "arity": f.arity} for f in functions]


def graphs_to_dict(graphs: GraphSet, keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Plain-data view of ``graphs``, limited to ``keys`` when given."""
    data: Dict[str, Any] = {
        "modules": [
            {"name": str(m.name), "file": m.file, "functions": _functions(m.functions)}
            for m in graphs.modules
        ],
        "module_edges": [
            {"from": str(e.src), "to": str(e.dst), "kind": e.kind}
            for e in graphs.module_edges
        ],
        "call_nodes": [{"mfa": _mfa(n.mfa)} for n in graphs.call_nodes],
        "call_edges": [
            {"kind": e.kind, "from": _mfa(e.src), "to": _mfa(e.dst)}
            for e in graphs.call_edges
        ],
        "module_call_edges": [
            {"from": str(e.src), "to": str(e.dst)} for e in graphs.module_call_edges
        ],
    }
    if keys is None:
        return data
    return {key: data[key] for key in keys}


def records_to_dict(records: Iterable[ModuleRecord]) -> Dict[str, Any]:
    """Plain-data view of extracted module records (the ``asts.json`` dump)."""
    return {
        "modules": [
            {
                "name": str(r.name),
                "file": r.file,
                "functions": _functions(r.functions),
                "calls": [
                    {"kind": c.kind, "from": _mfa(c.src), "to": _mfa(c.dst)}
                    for c in r.calls
                ],
                "refs": [{"kind": ref.kind, "target": str(ref.target)} for ref in r.refs],
            }
            for r in records
        ]
    }


def encode(data: Any, pretty: bool = True) -> str:
    if pretty:
        return json.dumps(data, sort_keys=True, indent=2, ensure_ascii=False)
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def to_json(graphs: GraphSet, keys: Optional[Iterable[str]] = None, pretty: bool = True) -> str:
    return encode(graphs_to_dict(graphs, keys), pretty=pretty)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

def _read_mfa(raw: List[Any]) -> MFA:
    module, name, arity = raw
    return MFA(QualifiedName.parse(module), name, int(arity))


def graphs_from_dict(data: Dict[str, Any]) -> GraphSet:
    """Rebuild a :class:`GraphSet` from :func:`graphs_to_dict` output.

    Sections missing from ``data`` come back empty.
    """
    return GraphSet(
        modules=[
            ModuleNode(
                name=QualifiedName.parse(m["name"]),
                file=m.get("file", ""),
                functions=tuple(
                    FunctionSignature(f["name"], int(f["arity"])) for f in m.get("functions", [])
                ),
            )
            for m in data.get("modules", [])
        ],
        module_edges=[
            ModuleEdge(QualifiedName.parse(e["from"]), QualifiedName.parse(e["to"]), e["kind"])
            for e in data.get("module_edges", [])
        ],
        call_nodes=[CallNode(_read_mfa(n["mfa"])) for n in data.get("call_nodes", [])],
        call_edges=[
            CallEdge(_read_mfa(e["from"]), _read_mfa(e["to"]), e["kind"])
            for e in data.get("call_edges", [])
        ],
        module_call_edges=[
            ModuleCallEdge(QualifiedName.parse(e["from"]), QualifiedName.parse(e["to"]))
            for e in data.get("module_call_edges", [])
        ],
    )


def from_json(text: str) -> GraphSet:
    return graphs_from_dict(json.loads(text))


def read_graphs(path: Path) -> GraphSet:
    return from_json(path.read_text(encoding="utf-8"))
