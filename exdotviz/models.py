"""Core data models shared by extraction, graph building, and rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Tuple

LOCAL = "local"
REMOTE = "remote"
CALL_KINDS = (LOCAL, REMOTE)

ALIAS = "alias"
IMPORT = "import"
USE = "use"
REF_KINDS = (ALIAS, IMPORT, USE)

# Module edges formed from call sites carry this kind.
CALL = "call"


@dataclass(frozen=True, order=True)
class QualifiedName:
    """Dot-segmented module identifier.

    The empty segment tuple is reserved for :data:`UNKNOWN`, the sentinel for a
    reference that could not be resolved statically.
    """

    segments: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, dotted: str) -> "QualifiedName":
        if not dotted or dotted == "unknown":
            return UNKNOWN
        return cls(tuple(dotted.split(".")))

    @property
    def is_unknown(self) -> bool:
        return not self.segments

    @property
    def last(self) -> str:
        return self.segments[-1]

    def concat(self, *segments: str) -> "QualifiedName":
        if self.is_unknown:
            return UNKNOWN
        return QualifiedName(self.segments + tuple(segments))

    def __str__(self) -> str:
        return ".".join(self.segments) if self.segments else "unknown"


UNKNOWN = QualifiedName(())


class FunctionSignature(NamedTuple):
    name: str
    arity: int


class MFA(NamedTuple):
    """A ``(module, function-name, arity)`` triple identifying one callable."""

    module: QualifiedName
    name: str
    arity: int

    def __str__(self) -> str:
        return f"{self.module}.{self.name}/{self.arity}"


@dataclass(frozen=True)
class CallSite:
    kind: str
    src: MFA
    dst: MFA


@dataclass(frozen=True)
class ReferenceDirective:
    kind: str
    target: QualifiedName


@dataclass
class ModuleRecord:
    """Normalized extraction result for one ``defmodule``."""

    name: QualifiedName
    file: str
    functions: List[FunctionSignature] = field(default_factory=list)
    calls: List[CallSite] = field(default_factory=list)
    refs: List[ReferenceDirective] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Graph artifacts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModuleNode:
    name: QualifiedName
    file: str
    functions: Tuple[FunctionSignature, ...] = ()


@dataclass(frozen=True)
class ModuleEdge:
    src: QualifiedName
    dst: QualifiedName
    kind: str


@dataclass(frozen=True)
class CallNode:
    mfa: MFA


@dataclass(frozen=True)
class CallEdge:
    src: MFA
    dst: MFA
    kind: str


@dataclass(frozen=True)
class ModuleCallEdge:
    src: QualifiedName
    dst: QualifiedName


@dataclass
class GraphSet:
    modules: List[ModuleNode] = field(default_factory=list)
    module_edges: List[ModuleEdge] = field(default_factory=list)
    call_nodes: List[CallNode] = field(default_factory=list)
    call_edges: List[CallEdge] = field(default_factory=list)
    module_call_edges: List[ModuleCallEdge] = field(default_factory=list)

    def known_modules(self) -> set:
        """Names of scanned modules; a module whose name is unknown never counts."""
        return {m.name for m in self.modules if not m.name.is_unknown}

    def stats(self) -> Dict[str, Any]:
        return {
            "modules": len(self.modules),
            "module_edges": len(self.module_edges),
            "call_nodes": len(self.call_nodes),
            "call_edges": len(self.call_edges),
            "module_call_edges": len(self.module_call_edges),
        }
