"""Known providers: existing implementations reused instead of synthesized.

Providers are found and ranked by the host tool (module-local before imported
project code before dependencies, and so on). The composer only asks whether
one of them already provides the type it is about to build.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .types import (
    CustomType,
    FunctionType,
    GenericVar,
    Opaque,
    QualifiedName,
    Record,
    ResolvedType,
    TupleType,
    TypeAlias,
)


@dataclass(frozen=True)
class KnownProvider:
    """An existing implementation of ``generator_id`` for ``declared_type``.

    ``declared_type`` is the type in the generator pattern's target hole, e.g.
    ``Foo`` for a provider annotated ``Decoder Foo``.
    """

    generator_id: str
    location: QualifiedName
    declared_type: ResolvedType


def same_type(provided: ResolvedType, target: ResolvedType) -> bool:
    """Structural equality, where a named type also equals its bare reference.

    A provider declared as ``Foo`` (an opaque reference, possibly applied to
    its own parameters) provides the custom type or alias ``Foo``.
    """
    if isinstance(target, CustomType | TypeAlias):
        if isinstance(provided, CustomType | TypeAlias):
            return provided == target
        if isinstance(provided, Opaque) and provided.ref == target.ref:
            return not provided.args or provided.args == tuple(
                GenericVar(p) for p in target.params
            )
        return False
    if isinstance(provided, CustomType | TypeAlias):
        return same_type(target, provided)
    if isinstance(target, Opaque):
        return (
            isinstance(provided, Opaque)
            and provided.ref == target.ref
            and _all_same(provided.args, target.args)
        )
    if isinstance(target, Record):
        return (
            isinstance(provided, Record)
            and [n for n, _ in provided.fields] == [n for n, _ in target.fields]
            and _all_same(
                tuple(t for _, t in provided.fields), tuple(t for _, t in target.fields)
            )
        )
    if isinstance(target, TupleType):
        return isinstance(provided, TupleType) and _all_same(provided.items, target.items)
    if isinstance(target, FunctionType):
        return (
            isinstance(provided, FunctionType)
            and same_type(provided.arg, target.arg)
            and same_type(provided.result, target.result)
        )
    return provided == target


def _all_same(provided: tuple[ResolvedType, ...], target: tuple[ResolvedType, ...]) -> bool:
    return len(provided) == len(target) and all(
        same_type(p, t) for p, t in zip(provided, target, strict=True)
    )


def find_provider(
    providers: Iterable[KnownProvider],
    generator_id: str,
    target: ResolvedType,
) -> KnownProvider | None:
    """First provider of ``generator_id`` whose declared type matches ``target``."""
    for provider in providers:
        if provider.generator_id == generator_id and same_type(provider.declared_type, target):
            return provider
    return None
