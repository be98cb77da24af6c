"""Shared types and registries for typederive tests."""

import pytest

from typederive import builders as b
from typederive.expressions import ListExpr, call, ref
from typederive.patterns import target, typed
from typederive.registry import generic, resolve
from typederive.resolvers import ActivationContext
from typederive.types import (
    Constructor,
    CustomType,
    QualifiedName,
    TypeAlias,
    opaque,
    record,
)

INT = opaque("Basics.Int")
STRING = opaque("String.String")


def q(dotted: str) -> QualifiedName:
    return QualifiedName.parse(dotted)


def make_person() -> TypeAlias:
    return TypeAlias(q("Main.Person"), aliased=record(name=STRING, age=INT))


def make_color() -> CustomType:
    return CustomType(
        q("Main.Color"),
        constructors=(Constructor(q("Main.Red")), Constructor(q("Main.Green"))),
    )


def make_tree() -> CustomType:
    return CustomType.recursive(
        q("Main.Tree"),
        lambda tree: [Constructor(q("Main.Leaf")), Constructor(q("Main.Node"), (tree, tree))],
    )


def make_node() -> TypeAlias:
    """``type alias Node = { value : Int, children : List Node }``"""
    return TypeAlias.recursive(
        q("Main.Node"),
        lambda node: record(value=INT, children=opaque("List.List", node)),
    )


def decoder_definitions(breaker: bool = True) -> list:
    """A small decoder generator, independent of the built-in library."""
    definitions = [
        b.int_(ref("Json.Decode.int")),
        b.string(ref("Json.Decode.string")),
        b.list_(lambda item: call(ref("Json.Decode.list"), item)),
        b.succeed(lambda ctor: call(ref("Json.Decode.succeed"), ctor)),
        b.map_(lambda ctor, child: call(ref("Json.Decode.map"), ctor, child)),
        b.map_n("Json.Decode", 8),
        b.custom_type(
            lambda _ctors, branches: call(
                ref("Json.Decode.oneOf"), ListExpr(tuple(e for _, e in branches))
            )
        ),
    ]
    if breaker:
        definitions.append(b.lambda_breaker(lambda e: call(ref("Json.Decode.lazy"), e)))
    return [
        generic(
            "decoder",
            typed("Json.Decode.Decoder", target()),
            lambda name: f"decode{name}",
            definitions,
        )
    ]


@pytest.fixture
def person() -> TypeAlias:
    return make_person()


@pytest.fixture
def color() -> CustomType:
    return make_color()


@pytest.fixture
def tree() -> CustomType:
    return make_tree()


@pytest.fixture
def node() -> TypeAlias:
    return make_node()


@pytest.fixture
def decoder():
    return resolve(ActivationContext(), decoder_definitions())[0]


@pytest.fixture
def strict_decoder():
    return resolve(ActivationContext(), decoder_definitions(breaker=False))[0]
