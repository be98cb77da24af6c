"""Search patterns over type annotations.

A generator is identified by the annotation shape it produces, e.g.
``Json.Decode.Decoder <target>`` or ``<target> -> Json.Encode.Value``. A
pattern holds exactly one ``Target`` hole. Matching an annotation extracts the
type in the hole; rebuilding puts another type back into it, which is how
auxiliary declarations get their annotations.

Matching is purely structural (qualified name and arity) and never raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from .types import FunctionType, Opaque, QualifiedName, ResolvedType, TupleType

# Sentinel for "matched, but this branch holds no target"
_NO_CHILD = object()


class TypePattern(ABC):
    """Base class for type patterns."""

    @abstractmethod
    def _match(self, annotation: ResolvedType) -> object | None:
        """Return the captured child, ``_NO_CHILD``, or None on mismatch."""
        ...

    @abstractmethod
    def rebuild(self, child: ResolvedType) -> ResolvedType:
        """Wrap ``child`` back into this pattern's shape."""
        ...

    @abstractmethod
    def target_count(self) -> int: ...

    def match(self, annotation: ResolvedType) -> ResolvedType | None:
        """Extract the target type from ``annotation``, or None."""
        child = self._match(annotation)
        if child is None or child is _NO_CHILD:
            return None
        return child  # type: ignore[return-value]


@dataclass(frozen=True)
class Target(TypePattern):
    """The hole: matches any type and captures it."""

    def _match(self, annotation: ResolvedType) -> object | None:
        return annotation

    def rebuild(self, child: ResolvedType) -> ResolvedType:
        return child

    def target_count(self) -> int:
        return 1


@dataclass(frozen=True)
class Typed(TypePattern):
    """An opaque type with the given qualified name and argument patterns."""

    ref: QualifiedName
    args: tuple[TypePattern, ...] = ()

    def _match(self, annotation: ResolvedType) -> object | None:
        if not isinstance(annotation, Opaque):
            return None
        if annotation.ref != self.ref or len(annotation.args) != len(self.args):
            return None
        return _match_all(self.args, annotation.args)

    def rebuild(self, child: ResolvedType) -> ResolvedType:
        return Opaque(self.ref, tuple(a.rebuild(child) for a in self.args))

    def target_count(self) -> int:
        return sum(a.target_count() for a in self.args)


@dataclass(frozen=True)
class FunctionOf(TypePattern):
    arg: TypePattern
    result: TypePattern

    def _match(self, annotation: ResolvedType) -> object | None:
        if not isinstance(annotation, FunctionType):
            return None
        return _match_all((self.arg, self.result), (annotation.arg, annotation.result))

    def rebuild(self, child: ResolvedType) -> ResolvedType:
        return FunctionType(self.arg.rebuild(child), self.result.rebuild(child))

    def target_count(self) -> int:
        return self.arg.target_count() + self.result.target_count()


@dataclass(frozen=True)
class TupleOf(TypePattern):
    items: tuple[TypePattern, ...]

    def _match(self, annotation: ResolvedType) -> object | None:
        if not isinstance(annotation, TupleType) or len(annotation.items) != len(self.items):
            return None
        return _match_all(self.items, annotation.items)

    def rebuild(self, child: ResolvedType) -> ResolvedType:
        return TupleType(tuple(i.rebuild(child) for i in self.items))

    def target_count(self) -> int:
        return sum(i.target_count() for i in self.items)


def _match_all(
    patterns: tuple[TypePattern, ...],
    annotations: tuple[ResolvedType, ...],
) -> object | None:
    found: object = _NO_CHILD
    for pattern, annotation in zip(patterns, annotations, strict=True):
        child = pattern._match(annotation)
        if child is None:
            return None
        if child is not _NO_CHILD:
            found = child
    return found


# Shorthands used by generator definitions


def target() -> Target:
    return Target()


def typed(dotted: str, *args: TypePattern) -> Typed:
    """``typed("Json.Decode.Decoder", target())``"""
    return Typed(QualifiedName.parse(dotted), tuple(args))


def function_of(arg: TypePattern, result: TypePattern) -> FunctionOf:
    return FunctionOf(arg, result)
