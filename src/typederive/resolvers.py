"""Resolver kinds and their activation conditions.

A resolver is one small fragment of generation logic. There are exactly four
kinds, modeled as a closed set of dataclasses that the composer matches on
explicitly:

- PrimitiveResolver: handles one opaque type by qualified name
- UniversalResolver: escape hatch, sees any type first
- CombinerResolver: merges a constructor expression with child expressions
- CustomTypeResolver: merges per-constructor expressions into one

A LambdaBreaker is not a resolver but travels in the same definition lists.
Every definition carries a Condition deciding whether it is active for the
capabilities enabled in the current run.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .expressions import Expr
from .types import Constructor, QualifiedName, ResolvedType

# =============================================================================
# Activation
# =============================================================================


@dataclass(frozen=True)
class ActivationContext:
    """The optional capabilities enabled for a run."""

    capabilities: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, *capabilities: str) -> ActivationContext:
        return cls(frozenset(capabilities))

    def has(self, capability: str) -> bool:
        return capability in self.capabilities

    def has_all(self, capabilities: Iterable[str]) -> bool:
        return all(c in self.capabilities for c in capabilities)


@dataclass(frozen=True)
class Condition:
    """Active when every named capability is enabled. No names means always."""

    dependencies: frozenset[str] = field(default_factory=frozenset)

    def is_active(self, context: ActivationContext) -> bool:
        return context.has_all(self.dependencies)

    def requiring(self, capability: str) -> Condition:
        return Condition(self.dependencies | {capability})


ALWAYS = Condition()


def dependencies(*names: str) -> Condition:
    return Condition(frozenset(names))


# =============================================================================
# Resolver kinds
# =============================================================================

PrimitiveBuild = Callable[[tuple[ResolvedType, ...], tuple[Expr, ...]], Expr | None]
UniversalBuild = Callable[[ResolvedType], Expr | None]
CombinerBuild = Callable[[ResolvedType, Expr, tuple[Expr, ...]], Expr | None]
CustomTypeBuild = Callable[[tuple[Constructor, ...], tuple[tuple[str, Expr], ...]], Expr]


@dataclass(frozen=True)
class PrimitiveResolver:
    """Handles ``ref``; receives the type arguments and their generated expressions."""

    ref: QualifiedName
    build: PrimitiveBuild
    label: str = "primitive"
    condition: Condition = ALWAYS


@dataclass(frozen=True)
class UniversalResolver:
    build: UniversalBuild
    label: str = "free-form"
    condition: Condition = ALWAYS


@dataclass(frozen=True)
class CombinerResolver:
    """Receives the full type, a constructor expression and the child expressions."""

    build: CombinerBuild
    label: str = "combiner"
    condition: Condition = ALWAYS


@dataclass(frozen=True)
class CustomTypeResolver:
    """Receives every constructor and its combined expression. Cannot decline."""

    build: CustomTypeBuild
    label: str = "custom-type"
    condition: Condition = ALWAYS


@dataclass(frozen=True)
class LambdaBreaker:
    """Wraps a self-reference so that it is not evaluated eagerly."""

    wrap: Callable[[Expr], Expr]
    label: str = "lambda-breaker"
    condition: Condition = ALWAYS


Resolver = PrimitiveResolver | UniversalResolver | CombinerResolver | CustomTypeResolver
Definition = Resolver | LambdaBreaker


def require(definition: Definition, capability: str) -> Definition:
    """Gate ``definition`` on ``capability`` in addition to its current condition."""
    return dataclasses.replace(definition, condition=definition.condition.requiring(capability))
