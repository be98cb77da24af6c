"""Vocabulary for writing generator definitions.

Each function returns one resolver (or lambda-breaker) ready to go into a
``generic()`` or ``amend()`` definition list. Later entries in a list take
precedence over earlier ones.

Example:
    from typederive import builders as b
    from typederive.expressions import call, ref

    decode = "Json.Decode"
    definitions = [
        b.int_(ref("Json.Decode.int")),
        b.list_(lambda item: call(ref("Json.Decode.list"), item)),
        b.succeed(lambda ctor: call(ref("Json.Decode.succeed"), ctor)),
        b.map_(lambda ctor, child: call(ref("Json.Decode.map"), ctor, child)),
        b.map_n(decode, 8),
    ]
"""

from __future__ import annotations

from collections.abc import Callable

from .expressions import Expr, Pipe, Ref, call
from .resolvers import (
    CombinerResolver,
    CustomTypeBuild,
    CustomTypeResolver,
    Definition,
    LambdaBreaker,
    PrimitiveBuild,
    PrimitiveResolver,
    UniversalBuild,
    UniversalResolver,
    require,
)
from .types import (
    ARRAY,
    BOOL,
    CHAR,
    DICT,
    FLOAT,
    INT,
    LIST,
    MAYBE,
    SET,
    STRING,
    UNIT,
    QualifiedName,
    ResolvedType,
    TupleType,
)

# =============================================================================
# Primitives
# =============================================================================


def primitive(dotted: str, build: PrimitiveBuild, label: str | None = None) -> PrimitiveResolver:
    """Resolver for the opaque type ``dotted``.

    ``build`` receives the type arguments and their generated expressions and
    may return None to decline.
    """
    ref = QualifiedName.parse(dotted)
    return PrimitiveResolver(ref=ref, build=build, label=label or ref.name)


def _constant(ref: QualifiedName, expr: Expr) -> PrimitiveResolver:
    return PrimitiveResolver(ref=ref, build=lambda _args, _children: expr, label=ref.name)


def bool_(expr: Expr) -> PrimitiveResolver:
    return _constant(BOOL, expr)


def int_(expr: Expr) -> PrimitiveResolver:
    return _constant(INT, expr)


def float_(expr: Expr) -> PrimitiveResolver:
    return _constant(FLOAT, expr)


def string(expr: Expr) -> PrimitiveResolver:
    return _constant(STRING, expr)


def char(expr: Expr) -> PrimitiveResolver:
    return _constant(CHAR, expr)


def unit(expr: Expr) -> PrimitiveResolver:
    return _constant(UNIT, expr)


def container(ref: QualifiedName, build: Callable[[Expr], Expr | None]) -> PrimitiveResolver:
    """One-argument parametric type; ``build`` gets the argument's expression."""

    def resolve(_args: tuple[ResolvedType, ...], children: tuple[Expr, ...]) -> Expr | None:
        if len(children) != 1:
            return None
        return build(children[0])

    return PrimitiveResolver(ref=ref, build=resolve, label=ref.name)


def container2(
    ref: QualifiedName,
    build: Callable[[Expr, Expr], Expr | None],
) -> PrimitiveResolver:
    """Two-argument parametric type."""

    def resolve(_args: tuple[ResolvedType, ...], children: tuple[Expr, ...]) -> Expr | None:
        if len(children) != 2:
            return None
        return build(children[0], children[1])

    return PrimitiveResolver(ref=ref, build=resolve, label=ref.name)


def list_(build: Callable[[Expr], Expr | None]) -> PrimitiveResolver:
    return container(LIST, build)


def array(build: Callable[[Expr], Expr | None]) -> PrimitiveResolver:
    return container(ARRAY, build)


def set_(build: Callable[[Expr], Expr | None]) -> PrimitiveResolver:
    return container(SET, build)


def maybe(build: Callable[[Expr], Expr | None]) -> PrimitiveResolver:
    return container(MAYBE, build)


def dict_(build: Callable[[Expr, Expr], Expr | None]) -> PrimitiveResolver:
    return container2(DICT, build)


# =============================================================================
# Combiners
# =============================================================================


def succeed(build: Callable[[Expr], Expr]) -> CombinerResolver:
    """Direct wrap of a constructor that takes no arguments."""

    def resolve(_t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
        return build(ctor) if not children else None

    return CombinerResolver(build=resolve, label="succeed")


def map_(build: Callable[[Expr, Expr], Expr]) -> CombinerResolver:
    """Single-argument map: ``build(ctor, child)``."""

    def resolve(_t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
        return build(ctor, children[0]) if len(children) == 1 else None

    return CombinerResolver(build=resolve, label="map")


def map_n(module: str, max_arity: int, template: str = "map{n}") -> CombinerResolver:
    """``module.map2 ctor a b`` up to ``max_arity`` children.

    ``template`` names the function for ``n`` children.
    """

    def resolve(_t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
        n = len(children)
        if not 2 <= n <= max_arity:
            return None
        return call(Ref(module, template.format(n=n)), ctor, *children)

    return CombinerResolver(build=resolve, label=f"{module}.{template.format(n='N')}")


def pipeline(start: Callable[[Expr], Expr], step: Callable[[Expr], Expr]) -> CombinerResolver:
    """``start(ctor) |> step(child1) |> step(child2) ...`` for any number of children."""

    def resolve(_t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
        result = start(ctor)
        for child in children:
            result = Pipe(result, step(child))
        return result

    return CombinerResolver(build=resolve, label="pipeline")


def combiner(
    build: Callable[[ResolvedType, Expr, tuple[Expr, ...]], Expr | None],
    label: str = "combiner",
) -> CombinerResolver:
    """Free-form combiner; return None to decline."""
    return CombinerResolver(build=build, label=label)


def tuple_(build: Callable[[Expr, Expr], Expr]) -> CombinerResolver:
    """Handles pairs only."""

    def resolve(t: ResolvedType, _ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
        if isinstance(t, TupleType) and len(t.items) == 2:
            return build(children[0], children[1])
        return None

    return CombinerResolver(build=resolve, label="tuple")


def triple(build: Callable[[Expr, Expr, Expr], Expr]) -> CombinerResolver:
    """Handles triples only."""

    def resolve(t: ResolvedType, _ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
        if isinstance(t, TupleType) and len(t.items) == 3:
            return build(children[0], children[1], children[2])
        return None

    return CombinerResolver(build=resolve, label="triple")


# =============================================================================
# Custom types, escape hatches, recursion
# =============================================================================


def custom_type(build: CustomTypeBuild) -> CustomTypeResolver:
    """Combine ``(constructor name, expression)`` pairs into one expression."""
    return CustomTypeResolver(build=build)


def free_form(build: UniversalBuild, label: str = "free-form") -> UniversalResolver:
    """Sees every type before anything else; return None to pass."""
    return UniversalResolver(build=build, label=label)


def lambda_breaker(wrap: Callable[[Expr], Expr]) -> LambdaBreaker:
    return LambdaBreaker(wrap=wrap)


def if_dependency(capability: str, definition: Definition) -> Definition:
    """Only active when ``capability`` is enabled."""
    return require(definition, capability)
