"""Random generators: ``Random.Generator a``.

Custom types pick a constructor uniformly. With ``elm-community/random-extra``
the generator also covers characters, strings, ``Maybe`` and constructors
with more arguments than ``Random.map5`` takes.
"""

from __future__ import annotations

from .. import builders as b
from ..expressions import (
    Expr,
    Lambda,
    ListExpr,
    Literal,
    Pipe,
    Ref,
    TupleExpr,
    Var,
    WildcardPattern,
    call,
    lam,
)
from ..patterns import target, typed
from ..registry import GeneratorEntry, amend, generic
from ..types import Constructor, ResolvedType

ID = "random-generator"
DEPENDENCY = "elm/random"
EXTRA = "elm-community/random-extra"

RANDOM = "Random"
MAX_MAP = 5
MAX_LENGTH = 10


def _r(name: str) -> Ref:
    return Ref(RANDOM, name)


def _list(item: Expr) -> Expr:
    length = call(_r("int"), Literal(0), Literal(MAX_LENGTH))
    return call(_r("andThen"), lam(["n"], call(_r("list"), Var("n"), item)), length)


def _uniform(
    _constructors: tuple[Constructor, ...], branches: tuple[tuple[str, Expr], ...]
) -> Expr:
    generators = [body for _, body in branches]
    choice = call(_r("uniform"), generators[0], ListExpr(tuple(generators[1:])))
    return call(_r("andThen"), Ref("Basics", "identity"), choice)


def _and_map(_t: ResolvedType, ctor: Expr, children: tuple[Expr, ...]) -> Expr | None:
    if len(children) <= MAX_MAP:
        return None
    result: Expr = call(_r("constant"), ctor)
    for child in children:
        result = Pipe(result, call(Ref("Random.Extra", "andMap"), child))
    return result


def _printable_char() -> Expr:
    return call(Ref("Random.Char", "char"), Literal(32), Literal(126))


def make_name(type_name: str) -> str:
    return f"random{type_name}"


def definitions() -> list[GeneratorEntry]:
    return [
        generic(
            ID,
            typed("Random.Generator", target()),
            make_name,
            [
                b.bool_(
                    call(_r("uniform"), Ref("Basics", "True"), ListExpr((Ref("Basics", "False"),)))
                ),
                b.int_(call(_r("int"), _r("minInt"), _r("maxInt"))),
                b.float_(call(_r("float"), Literal(0), Literal(1))),
                b.unit(call(_r("constant"), TupleExpr(()))),
                b.list_(_list),
                b.array(lambda item: call(_r("map"), Ref("Array", "fromList"), _list(item))),
                b.set_(lambda item: call(_r("map"), Ref("Set", "fromList"), _list(item))),
                b.dict_(
                    lambda key, value: call(
                        _r("map"), Ref("Dict", "fromList"), _list(call(_r("pair"), key, value))
                    )
                ),
                b.succeed(lambda ctor: call(_r("constant"), ctor)),
                b.map_(lambda ctor, child: call(_r("map"), ctor, child)),
                b.map_n(RANDOM, MAX_MAP),
                b.tuple_(lambda first, second: call(_r("pair"), first, second)),
                b.custom_type(_uniform),
                b.lambda_breaker(lambda e: call(_r("lazy"), Lambda((WildcardPattern(),), e))),
            ],
            dependency=DEPENDENCY,
        ),
        amend(
            ID,
            [
                b.if_dependency(EXTRA, b.char(_printable_char())),
                b.if_dependency(
                    EXTRA,
                    b.string(
                        call(Ref("Random.String", "string"), Literal(MAX_LENGTH), _printable_char())
                    ),
                ),
                b.if_dependency(
                    EXTRA,
                    b.maybe(
                        lambda item: call(
                            Ref("Random.Extra", "maybe"), Ref("Random.Extra", "bool"), item
                        )
                    ),
                ),
                b.if_dependency(EXTRA, b.combiner(_and_map, label="andMap")),
            ],
        ),
    ]


__all__ = ["DEPENDENCY", "EXTRA", "ID", "definitions", "make_name"]
