"""Resolved type model.

A resolved type is a normalized, fully-qualified structural description of a
type. All references carry their module path, so there is no ambiguity from
local import aliases. Resolved types are immutable once built.

Named types (custom types and aliases) compare by qualified name and
parameters only. Their bodies are excluded from equality and ``repr`` so that
self-referential graphs, built with ``CustomType.recursive`` or
``TypeAlias.recursive``, stay finite to compare, hash and print.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class QualifiedName:
    """Module path plus name, e.g. ``Json.Decode.Decoder``."""

    module: str
    name: str

    @classmethod
    def parse(cls, dotted: str) -> QualifiedName:
        """Split ``A.B.name`` into module ``A.B`` and name ``name``."""
        module, _, name = dotted.rpartition(".")
        if not name:
            raise ValueError(f"Not a qualified name: {dotted!r}")
        return cls(module, name)

    def __str__(self) -> str:
        return f"{self.module}.{self.name}" if self.module else self.name


class ResolvedType:
    """Base class for resolved types."""

    __slots__ = ()


@dataclass(frozen=True)
class Opaque(ResolvedType):
    """A primitive or otherwise opaque type applied to arguments."""

    ref: QualifiedName
    args: tuple[ResolvedType, ...] = ()


@dataclass(frozen=True)
class GenericVar(ResolvedType):
    """An unresolved type variable."""

    name: str


@dataclass(frozen=True)
class FunctionType(ResolvedType):
    arg: ResolvedType
    result: ResolvedType


@dataclass(frozen=True)
class Record(ResolvedType):
    """Anonymous record with ordered fields."""

    fields: tuple[tuple[str, ResolvedType], ...]


@dataclass(frozen=True)
class TupleType(ResolvedType):
    items: tuple[ResolvedType, ...]


@dataclass(frozen=True)
class Constructor:
    """One variant of a custom type."""

    ref: QualifiedName
    args: tuple[ResolvedType, ...] = ()


@dataclass(frozen=True, eq=False)
class CustomType(ResolvedType):
    """A sum type with an ordered list of constructors."""

    ref: QualifiedName
    params: tuple[str, ...] = ()
    constructors: tuple[Constructor, ...] = field(default=(), repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CustomType):
            return NotImplemented
        return self.ref == other.ref and self.params == other.params

    def __hash__(self) -> int:
        return hash(("custom", self.ref, self.params))

    @classmethod
    def recursive(
        cls,
        ref: QualifiedName,
        build: Callable[[CustomType], Iterable[Constructor]],
        params: tuple[str, ...] = (),
    ) -> CustomType:
        """Build a custom type whose constructors may refer to the type itself."""
        instance = cls(ref, params)
        object.__setattr__(instance, "constructors", tuple(build(instance)))
        return instance


@dataclass(frozen=True, eq=False)
class TypeAlias(ResolvedType):
    """A named alias for another type."""

    ref: QualifiedName
    params: tuple[str, ...] = ()
    aliased: ResolvedType | None = field(default=None, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeAlias):
            return NotImplemented
        return self.ref == other.ref and self.params == other.params

    def __hash__(self) -> int:
        return hash(("alias", self.ref, self.params))

    @classmethod
    def recursive(
        cls,
        ref: QualifiedName,
        build: Callable[[TypeAlias], ResolvedType],
        params: tuple[str, ...] = (),
    ) -> TypeAlias:
        """Build an alias whose body may refer to the alias itself."""
        instance = cls(ref, params)
        object.__setattr__(instance, "aliased", build(instance))
        return instance


NamedType = CustomType | TypeAlias

# Well-known names
BOOL = QualifiedName("Basics", "Bool")
INT = QualifiedName("Basics", "Int")
FLOAT = QualifiedName("Basics", "Float")
STRING = QualifiedName("String", "String")
CHAR = QualifiedName("Char", "Char")
UNIT = QualifiedName("Basics", "Unit")
LIST = QualifiedName("List", "List")
ARRAY = QualifiedName("Array", "Array")
SET = QualifiedName("Set", "Set")
MAYBE = QualifiedName("Maybe", "Maybe")
DICT = QualifiedName("Dict", "Dict")


def opaque(dotted: str, *args: ResolvedType) -> Opaque:
    """Shorthand: ``opaque("List.List", opaque("Basics.Int"))``."""
    return Opaque(QualifiedName.parse(dotted), tuple(args))


def record(**fields: ResolvedType) -> Record:
    return Record(tuple(fields.items()))


def reference_type(named: NamedType) -> Opaque:
    """The bare reference to a named type, as written in an annotation."""
    return Opaque(named.ref, tuple(GenericVar(p) for p in named.params))


def render_type(t: ResolvedType) -> str:
    """Render a type the way it would be written in an annotation."""
    if isinstance(t, Opaque):
        if not t.args:
            return str(t.ref)
        return " ".join([str(t.ref), *(_render_arg(a) for a in t.args)])
    if isinstance(t, CustomType | TypeAlias):
        return " ".join([str(t.ref), *t.params])
    if isinstance(t, GenericVar):
        return t.name
    if isinstance(t, FunctionType):
        arg = render_type(t.arg)
        if isinstance(t.arg, FunctionType):
            arg = f"({arg})"
        return f"{arg} -> {render_type(t.result)}"
    if isinstance(t, Record):
        if not t.fields:
            return "{}"
        inner = ", ".join(f"{name} : {render_type(ft)}" for name, ft in t.fields)
        return f"{{ {inner} }}"
    if isinstance(t, TupleType):
        if not t.items:
            return "()"
        return f"( {', '.join(render_type(i) for i in t.items)} )"
    raise TypeError(f"Not a resolved type: {t!r}")


def _render_arg(t: ResolvedType) -> str:
    text = render_type(t)
    needs_parens = (isinstance(t, Opaque) and t.args) or isinstance(t, FunctionType)
    if isinstance(t, CustomType | TypeAlias) and t.params:
        needs_parens = True
    return f"({text})" if needs_parens else text
