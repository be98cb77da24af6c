"""JSON decoders: ``Json.Decode.Decoder a``.

Records decode field by field, tuples by array index. Custom types are
encoded as tagged objects, ``{"tag": "Node", "0": ..., "1": ...}``, with
constructor arguments stored under their position.
"""

from __future__ import annotations

from .. import builders as b
from ..expressions import (
    Case,
    ConstructorPattern,
    Expr,
    Lambda,
    Literal,
    LiteralPattern,
    Pipe,
    Ref,
    TuplePattern,
    TupleExpr,
    Var,
    VarPattern,
    WildcardPattern,
    call,
    lam,
)
from ..patterns import target, typed
from ..registry import GeneratorEntry, amend, generic
from ..types import STRING, Constructor, Opaque, Record, ResolvedType, TupleType

ID = "json-decoder"
DEPENDENCY = "elm/json"
PIPELINE = "NoRedInk/elm-json-decode-pipeline"

DECODE = "Json.Decode"
MAX_MAP = 8


def _d(name: str) -> Ref:
    return Ref(DECODE, name)


def _char() -> Expr:
    # A one-character string
    single = ConstructorPattern(
        "Maybe", "Just", (TuplePattern((VarPattern("c"), LiteralPattern(""))),)
    )
    check = lam(
        ["s"],
        Case(
            call(Ref("String", "uncons"), Var("s")),
            (
                (single, call(_d("succeed"), Var("c"))),
                (WildcardPattern(), call(_d("fail"), Literal("Expected a single character"))),
            ),
        ),
    )
    return call(_d("andThen"), check, _d("string"))


def _dict(args: tuple[ResolvedType, ...], children: tuple[Expr, ...]) -> Expr | None:
    if args[0] != Opaque(STRING):
        return None
    return call(_d("dict"), children[1])


def _field_names(t: ResolvedType, count: int) -> list[Expr]:
    if isinstance(t, Record):
        return [Literal(name) for name, _ in t.fields]
    if isinstance(t, TupleType):
        return [Literal(i) for i in range(count)]
    return [Literal(str(i)) for i in range(count)]


def _by_field(t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
    n = len(children)
    if not 1 <= n <= MAX_MAP:
        return None
    accessor = _d("index") if isinstance(t, TupleType) else _d("field")
    located = [
        call(accessor, key, child) for key, child in zip(_field_names(t, n), children, strict=True)
    ]
    fn = _d("map") if n == 1 else _d(f"map{n}")
    return call(fn, ctor, *located)


def _tagged(constructors: tuple[Constructor, ...], branches: tuple[tuple[str, Expr], ...]) -> Expr:
    cases = tuple((LiteralPattern(name), body) for name, body in branches)
    fallback = (WildcardPattern(), call(_d("fail"), Literal("Unrecognized constructor")))
    on_tag = lam(["tag"], Case(Var("tag"), (*cases, fallback)))
    return call(_d("andThen"), on_tag, call(_d("field"), Literal("tag"), _d("string")))


def _pipeline_record(t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
    if not isinstance(t, Record) or not children:
        return None
    result: Expr = call(_d("succeed"), ctor)
    for (name, _), child in zip(t.fields, children, strict=True):
        result = Pipe(result, call(Ref("Json.Decode.Pipeline", "required"), Literal(name), child))
    return result


def make_name(type_name: str) -> str:
    return f"decode{type_name}"


def definitions() -> list[GeneratorEntry]:
    return [
        generic(
            ID,
            typed("Json.Decode.Decoder", target()),
            make_name,
            [
                b.bool_(_d("bool")),
                b.int_(_d("int")),
                b.float_(_d("float")),
                b.string(_d("string")),
                b.char(_char()),
                b.unit(call(_d("succeed"), TupleExpr(()))),
                b.list_(lambda item: call(_d("list"), item)),
                b.array(lambda item: call(_d("array"), item)),
                b.set_(
                    lambda item: call(_d("map"), Ref("Set", "fromList"), call(_d("list"), item))
                ),
                b.maybe(lambda item: call(_d("nullable"), item)),
                b.primitive("Dict.Dict", _dict, label="dict"),
                b.succeed(lambda ctor: call(_d("succeed"), ctor)),
                b.combiner(_by_field, label="field"),
                b.custom_type(_tagged),
                b.lambda_breaker(lambda e: call(_d("lazy"), Lambda((WildcardPattern(),), e))),
            ],
            dependency=DEPENDENCY,
        ),
        amend(ID, [b.if_dependency(PIPELINE, b.combiner(_pipeline_record, label="pipeline"))]),
    ]


__all__ = ["DEPENDENCY", "ID", "PIPELINE", "definitions", "make_name"]
