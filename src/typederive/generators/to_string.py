"""``a -> String.String`` for enumeration-like custom types.

Each constructor renders as its own name. Constructors with arguments are
not supported.
"""

from __future__ import annotations

from .. import builders as b
from ..expressions import Case, ConstructorPattern, Expr, Literal, Ref, Var, lam
from ..patterns import function_of, target, typed
from ..registry import GeneratorEntry, generic
from ..types import Constructor, CustomType, ResolvedType

ID = "to-string"


def _constructor_name(t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
    if not isinstance(t, CustomType) or not isinstance(ctor, Ref) or children:
        return None
    return Literal(ctor.name)


def _case_of(
    constructors: tuple[Constructor, ...], branches: tuple[tuple[str, Expr], ...]
) -> Expr:
    cases = tuple(
        (ConstructorPattern(constructor.ref.module, constructor.ref.name), body)
        for constructor, (_, body) in zip(constructors, branches, strict=True)
    )
    return lam(["value"], Case(Var("value"), cases))


def make_name(type_name: str) -> str:
    return f"{type_name[:1].lower()}{type_name[1:]}ToString"


def definitions() -> list[GeneratorEntry]:
    return [
        generic(
            ID,
            function_of(target(), typed("String.String")),
            make_name,
            [
                b.combiner(_constructor_name, label="constructor-name"),
                b.custom_type(_case_of),
            ],
        ),
    ]


__all__ = ["ID", "definitions", "make_name"]
