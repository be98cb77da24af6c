"""JSON encoders: ``a -> Json.Encode.Value``.

Produces the same shapes the json-decoder generator reads: objects for
records, arrays for tuples and tagged objects for custom types. Encoders
are functions, so recursive types need no lambda-breaker.
"""

from __future__ import annotations

from .. import builders as b
from ..expressions import (
    Case,
    ConstructorPattern,
    Expr,
    FieldAccess,
    Lambda,
    ListExpr,
    Literal,
    Ref,
    TupleExpr,
    TuplePattern,
    Var,
    VarPattern,
    WildcardPattern,
    call,
    lam,
)
from ..patterns import function_of, target, typed
from ..registry import GeneratorEntry, generic
from ..types import STRING, Constructor, CustomType, Opaque, Record, ResolvedType, TupleType

ID = "json-encoder"
DEPENDENCY = "elm/json"

ENCODE = "Json.Encode"


def _e(name: str) -> Ref:
    return Ref(ENCODE, name)


def _object(pairs: list[tuple[str, Expr]]) -> Expr:
    return call(_e("object"), ListExpr(tuple(TupleExpr((Literal(k), v)) for k, v in pairs)))


def _maybe(item: Expr) -> Expr:
    return lam(
        ["m"],
        Case(
            Var("m"),
            (
                (ConstructorPattern("Maybe", "Just", (VarPattern("v"),)), call(item, Var("v"))),
                (ConstructorPattern("Maybe", "Nothing"), _e("null")),
            ),
        ),
    )


def _dict(args: tuple[ResolvedType, ...], children: tuple[Expr, ...]) -> Expr | None:
    if args[0] != Opaque(STRING):
        return None
    return call(_e("dict"), Ref("Basics", "identity"), children[1])


def _record(t: ResolvedType, _ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
    if not isinstance(t, Record):
        return None
    pairs = [
        (name, call(child, FieldAccess(Var("rec"), name)))
        for (name, _), child in zip(t.fields, children, strict=True)
    ]
    return lam(["rec"], _object(pairs))


def _tuple(t: ResolvedType, _ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
    if not isinstance(t, TupleType):
        return None
    names = ["a", "b", "c"][: len(children)]
    items = ListExpr(tuple(call(child, Var(n)) for n, child in zip(names, children, strict=True)))
    return Lambda(
        (TuplePattern(tuple(VarPattern(n) for n in names)),),
        call(_e("list"), Ref("Basics", "identity"), items),
    )


def _constructor(t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
    if not isinstance(t, CustomType) or not isinstance(ctor, Ref):
        return None
    names = [f"a{i}" for i in range(len(children))]
    pairs = [("tag", call(_e("string"), Literal(ctor.name)))]
    pairs.extend(
        (str(i), call(child, Var(n)))
        for i, (n, child) in enumerate(zip(names, children, strict=True))
    )
    if not names:
        return _object(pairs)
    return lam(names, _object(pairs))


def _case_of(
    constructors: tuple[Constructor, ...], branches: tuple[tuple[str, Expr], ...]
) -> Expr:
    cases = []
    for constructor, (_, body) in zip(constructors, branches, strict=True):
        names = [f"a{i}" for i in range(len(constructor.args))]
        pattern = ConstructorPattern(
            constructor.ref.module,
            constructor.ref.name,
            tuple(VarPattern(n) for n in names),
        )
        cases.append((pattern, call(body, *(Var(n) for n in names))))
    return lam(["value"], Case(Var("value"), tuple(cases)))


def make_name(type_name: str) -> str:
    return f"encode{type_name}"


def definitions() -> list[GeneratorEntry]:
    return [
        generic(
            ID,
            function_of(target(), typed("Json.Encode.Value")),
            make_name,
            [
                b.bool_(_e("bool")),
                b.int_(_e("int")),
                b.float_(_e("float")),
                b.string(_e("string")),
                b.char(lam(["c"], call(_e("string"), call(Ref("String", "fromChar"), Var("c"))))),
                b.unit(Lambda((WildcardPattern(),), _e("null"))),
                b.list_(lambda item: call(_e("list"), item)),
                b.array(lambda item: call(_e("array"), item)),
                b.set_(lambda item: call(_e("set"), item)),
                b.maybe(_maybe),
                b.primitive("Dict.Dict", _dict, label="dict"),
                b.combiner(_record, label="record"),
                b.combiner(_tuple, label="tuple"),
                b.combiner(_constructor, label="constructor"),
                b.custom_type(_case_of),
            ],
            dependency=DEPENDENCY,
        ),
    ]


__all__ = ["DEPENDENCY", "ID", "definitions", "make_name"]
