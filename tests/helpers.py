"""Builders for module records used across the graph tests."""

from exdotviz.models import (
    LOCAL,
    MFA,
    REMOTE,
    CallSite,
    FunctionSignature,
    ModuleRecord,
    QualifiedName,
    ReferenceDirective,
)


def qn(dotted: str) -> QualifiedName:
    return QualifiedName.parse(dotted)


def mfa(module: str, name: str, arity: int) -> MFA:
    return MFA(qn(module), name, arity)


def local_call(module: str, src: str, src_arity: int, dst: str, dst_arity: int) -> CallSite:
    return CallSite(LOCAL, mfa(module, src, src_arity), mfa(module, dst, dst_arity))


def remote_call(module: str, src: str, src_arity: int, target: str, dst: str, dst_arity: int) -> CallSite:
    return CallSite(REMOTE, mfa(module, src, src_arity), mfa(target, dst, dst_arity))


def record(name: str, file: str = "lib/x.ex", functions=(), calls=(), refs=()) -> ModuleRecord:
    return ModuleRecord(
        name=qn(name),
        file=file,
        functions=sorted(FunctionSignature(n, a) for n, a in functions),
        calls=list(calls),
        refs=[ReferenceDirective(kind, qn(target)) for kind, target in refs],
    )
