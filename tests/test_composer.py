"""Tests for the expression composer."""

import pytest
from conftest import INT, STRING, decoder_definitions, q

from typederive import builders as b
from typederive.composer import PAIR, Composer, generate
from typederive.errors import (
    ErrorCategory,
    IllegalTupleArityError,
    NoResolverError,
    UnbrokenRecursionError,
    UnsupportedTypeError,
)
from typederive.expressions import (
    Lambda,
    ListExpr,
    RecordExpr,
    Ref,
    TupleExpr,
    Var,
    WildcardPattern,
    call,
    lam,
    ref,
)
from typederive.patterns import target, typed
from typederive.providers import KnownProvider
from typederive.registry import amend, generic, resolve
from typederive.resolvers import ActivationContext
from typederive.types import (
    Constructor,
    CustomType,
    FunctionType,
    GenericVar,
    Opaque,
    TupleType,
    TypeAlias,
    opaque,
    record,
)

CONTEXT = ActivationContext()
MAP2 = ref("Json.Decode.map2")
LIST = ref("Json.Decode.list")
LAZY = ref("Json.Decode.lazy")
PERSON_CTOR = lam(["name", "age"], RecordExpr((("name", Var("name")), ("age", Var("age")))))


def registry_with(*extra):
    return resolve(CONTEXT, [*decoder_definitions(), amend("decoder", list(extra))])[0]


class TestPrimitives:
    """Tests for opaque types."""

    def test_primitive(self, decoder):
        expression, auxiliary = generate(decoder, CONTEXT, (), INT)
        assert expression == ref("Json.Decode.int")
        assert auxiliary == []

    def test_container(self, decoder):
        expression, _ = generate(decoder, CONTEXT, (), opaque("List.List", STRING))
        assert expression == call(LIST, ref("Json.Decode.string"))

    def test_unknown_opaque_type(self, decoder):
        with pytest.raises(NoResolverError, match="Don't know how to implement Bytes.Bytes"):
            generate(decoder, CONTEXT, (), opaque("Bytes.Bytes"))

    def test_declining_primitive_falls_through(self):
        decoder = registry_with(b.primitive("Basics.Int", lambda _args, _children: None))
        expression, _ = generate(decoder, CONTEXT, (), INT)
        assert expression == ref("Json.Decode.int")

    def test_higher_priority_primitive_wins(self):
        decoder = registry_with(b.int_(ref("Custom.int")))
        expression, _ = generate(decoder, CONTEXT, (), INT)
        assert expression == ref("Custom.int")


class TestUniversal:
    """Tests for universal resolvers."""

    def test_universal_runs_before_shape_rules(self):
        decoder = registry_with(b.free_form(lambda t: ref("Custom.int") if t == INT else None))
        expression, _ = generate(decoder, CONTEXT, (), opaque("List.List", INT))
        assert expression == call(LIST, ref("Custom.int"))

    def test_universal_sees_unsupported_shapes(self):
        decoder = registry_with(
            b.free_form(lambda t: ref("Custom.any") if isinstance(t, GenericVar) else None)
        )
        expression, _ = generate(decoder, CONTEXT, (), GenericVar("a"))
        assert expression == ref("Custom.any")


class TestRecordsAndTuples:
    """Tests for records and tuples."""

    def test_top_level_record_alias_is_inlined(self, decoder, person):
        expression, auxiliary = generate(
            decoder, CONTEXT, (), person, declaration_name="decodePerson"
        )
        assert expression == call(
            MAP2, PERSON_CTOR, ref("Json.Decode.string"), ref("Json.Decode.int")
        )
        assert auxiliary == []

    def test_anonymous_record(self, decoder):
        expression, _ = generate(decoder, CONTEXT, (), record(id=INT))
        expected_ctor = lam(["id"], RecordExpr((("id", Var("id")),)))
        assert expression == call(ref("Json.Decode.map"), expected_ctor, ref("Json.Decode.int"))

    def test_empty_record(self, decoder):
        expression, _ = generate(decoder, CONTEXT, (), record())
        assert expression == call(ref("Json.Decode.succeed"), RecordExpr(()))

    def test_pair_uses_canonical_constructor(self, decoder):
        expression, _ = generate(decoder, CONTEXT, (), TupleType((INT, STRING)))
        assert expression == call(MAP2, PAIR, ref("Json.Decode.int"), ref("Json.Decode.string"))

    def test_triple_uses_lambda_constructor(self, decoder):
        expression, _ = generate(decoder, CONTEXT, (), TupleType((INT, INT, INT)))
        ctor = lam(["a", "b", "c"], TupleExpr((Var("a"), Var("b"), Var("c"))))
        int_ = ref("Json.Decode.int")
        assert expression == call(ref("Json.Decode.map3"), ctor, int_, int_, int_)

    def test_unit_is_redirected(self):
        decoder = registry_with(b.unit(ref("Custom.unit")))
        expression, _ = generate(decoder, CONTEXT, (), TupleType(()))
        assert expression == ref("Custom.unit")

    @pytest.mark.parametrize("arity", [1, 4])
    def test_illegal_tuple_arity(self, decoder, arity):
        with pytest.raises(IllegalTupleArityError, match=f"Illegal tuple arity: {arity}"):
            generate(decoder, CONTEXT, (), TupleType((INT,) * arity))

    def test_non_record_alias_is_unwrapped(self, decoder):
        user_id = TypeAlias(q("Main.UserId"), aliased=INT)
        expression, auxiliary = generate(decoder, CONTEXT, (), opaque("List.List", user_id))
        assert expression == call(LIST, ref("Json.Decode.int"))
        assert auxiliary == []


class TestCustomTypes:
    """Tests for custom types."""

    def test_enumeration(self, decoder, color):
        expression, _ = generate(decoder, CONTEXT, (), color, declaration_name="decodeColor")
        succeed = ref("Json.Decode.succeed")
        assert expression == call(
            ref("Json.Decode.oneOf"),
            ListExpr((call(succeed, ref("Main.Red")), call(succeed, ref("Main.Green")))),
        )

    def test_constructor_arguments(self, decoder):
        shape = CustomType(q("Main.Shape"), constructors=(Constructor(q("Main.Circle"), (INT,)),))
        expression, _ = generate(decoder, CONTEXT, (), shape)
        mapped = call(ref("Json.Decode.map"), ref("Main.Circle"), ref("Json.Decode.int"))
        assert expression == call(ref("Json.Decode.oneOf"), ListExpr((mapped,)))

    def test_too_many_constructor_arguments(self, decoder):
        big = CustomType(q("Main.Big"), constructors=(Constructor(q("Main.Big"), (INT,) * 9),))
        with pytest.raises(NoResolverError, match="Don't know how to implement Main.Big"):
            generate(decoder, CONTEXT, (), big)

    def test_missing_custom_type_resolver(self, color):
        entries = [
            generic(
                "decoder",
                typed("Json.Decode.Decoder", target()),
                str,
                [b.succeed(lambda ctor: call(ref("Json.Decode.succeed"), ctor))],
            )
        ]
        decoder = resolve(CONTEXT, entries)[0]
        with pytest.raises(NoResolverError, match="Main.Color") as exc:
            generate(decoder, CONTEXT, (), color)
        assert exc.value.context["generator"] == "decoder"


class TestUnsupported:
    """Tests for rejected type shapes."""

    def test_generic_variable(self, decoder):
        with pytest.raises(UnsupportedTypeError) as exc:
            generate(decoder, CONTEXT, (), GenericVar("a"))
        assert exc.value.category == ErrorCategory.GENERIC_VARIABLE

    def test_function_type(self, decoder):
        with pytest.raises(UnsupportedTypeError) as exc:
            generate(decoder, CONTEXT, (), FunctionType(INT, INT))
        assert exc.value.category == ErrorCategory.FUNCTION_TYPE

    def test_generic_alias(self, decoder):
        box = TypeAlias(q("Main.Box"), ("a",), record(value=GenericVar("a")))
        with pytest.raises(UnsupportedTypeError) as exc:
            generate(decoder, CONTEXT, (), box)
        assert exc.value.category == ErrorCategory.GENERIC_ALIAS

    def test_generic_custom_type(self, decoder):
        maybe = CustomType(q("Main.Opt"), ("a",), (Constructor(q("Main.None")),))
        with pytest.raises(UnsupportedTypeError) as exc:
            generate(decoder, CONTEXT, (), maybe)
        assert exc.value.category == ErrorCategory.GENERIC_CUSTOM_TYPE

    def test_first_failing_child_aborts(self, decoder):
        with pytest.raises(UnsupportedTypeError):
            generate(decoder, CONTEXT, (), record(ok=INT, bad=GenericVar("a")))

    def test_custom_type_without_constructors(self, decoder):
        with pytest.raises(UnsupportedTypeError, match="Main.Never has no constructors") as exc:
            generate(decoder, CONTEXT, (), CustomType(q("Main.Never")))
        assert exc.value.category == ErrorCategory.UNSUPPORTED


class TestAuxiliaryDeclarations:
    """Tests for the declaration arena."""

    def test_nested_named_type_becomes_declaration(self, decoder, person):
        expression, auxiliary = generate(
            decoder,
            CONTEXT,
            (),
            opaque("List.List", person),
            declaration_name="decodePeople",
        )
        assert expression == call(LIST, Ref("", "decodePerson"))
        assert [d.name for d in auxiliary] == ["decodePerson"]
        assert auxiliary[0].body == call(
            MAP2, PERSON_CTOR, ref("Json.Decode.string"), ref("Json.Decode.int")
        )
        assert auxiliary[0].annotation == opaque(
            "Json.Decode.Decoder", Opaque(q("Main.Person"))
        )

    def test_repeated_named_type_is_composed_once(self, decoder, person):
        expression, auxiliary = generate(decoder, CONTEXT, (), TupleType((person, person)))
        decode_person = Ref("", "decodePerson")
        assert expression == call(MAP2, PAIR, decode_person, decode_person)
        assert len(auxiliary) == 1

    def test_name_collision_gets_suffix(self, decoder, person):
        expression, auxiliary = generate(
            decoder,
            CONTEXT,
            (),
            opaque("List.List", person),
            declaration_name="decodePerson",
        )
        assert expression == call(LIST, Ref("", "decodePerson2"))
        assert [d.name for d in auxiliary] == ["decodePerson2"]

    def test_reserved_names_are_avoided(self, decoder, person):
        composer = Composer(decoder, CONTEXT, reserved_names=["decodePerson"])
        composition = composer.compose(opaque("List.List", person))
        assert [d.name for d in composition.declarations] == ["decodePerson2"]

    def test_generate_forwards_reserved_names(self, decoder, person):
        expression, auxiliary = generate(
            decoder, CONTEXT, (), opaque("List.List", person), reserved_names=["decodePerson"]
        )
        assert expression == call(LIST, Ref("", "decodePerson2"))
        assert [d.name for d in auxiliary] == ["decodePerson2"]

    def test_declarations_follow_completion_order(self, decoder, person):
        team = TypeAlias(
            q("Main.Team"), aliased=record(lead=person, members=opaque("List.List", person))
        )
        _, auxiliary = generate(decoder, CONTEXT, (), opaque("List.List", team))
        assert [d.name for d in auxiliary] == ["decodePerson", "decodeTeam"]


class TestProviders:
    """Tests for known provider reuse."""

    def test_provider_replaces_synthesis(self, decoder, person):
        provider = KnownProvider("decoder", q("Api.decodePerson"), Opaque(q("Main.Person")))
        expression, auxiliary = generate(decoder, CONTEXT, [provider], opaque("List.List", person))
        assert expression == call(LIST, ref("Api.decodePerson"))
        assert auxiliary == []

    def test_provider_for_other_generator_is_ignored(self, decoder):
        provider = KnownProvider("encoder", q("Api.int"), INT)
        expression, _ = generate(decoder, CONTEXT, [provider], INT)
        assert expression == ref("Json.Decode.int")

    def test_provider_for_primitive(self, decoder):
        provider = KnownProvider("decoder", q("Api.strictInt"), INT)
        expression, _ = generate(decoder, CONTEXT, [provider], opaque("List.List", INT))
        assert expression == call(LIST, ref("Api.strictInt"))


class TestRecursion:
    """Tests for recursive types."""

    def test_self_reference_points_at_requested_declaration(self, decoder, tree):
        expression, auxiliary = generate(decoder, CONTEXT, (), tree, declaration_name="decodeTree")
        lazy_tree = call(LAZY, Ref("", "decodeTree"))
        assert expression == call(
            ref("Json.Decode.oneOf"),
            ListExpr(
                (
                    call(ref("Json.Decode.succeed"), ref("Main.Leaf")),
                    call(MAP2, ref("Main.Node"), lazy_tree, lazy_tree),
                )
            ),
        )
        assert auxiliary == []

    def test_recursive_auxiliary_declaration(self, decoder, tree):
        expression, auxiliary = generate(
            decoder, CONTEXT, (), opaque("List.List", tree), declaration_name="decodeForest"
        )
        assert expression == call(LIST, Ref("", "decodeTree"))
        assert [d.name for d in auxiliary] == ["decodeTree"]
        node_branch = auxiliary[0].body.args[0].items[1]
        assert node_branch.args[1] == call(LAZY, Ref("", "decodeTree"))

    def test_recursive_record_alias(self, decoder, node):
        expression, _ = generate(decoder, CONTEXT, (), node, declaration_name="decodeNode")
        assert expression.args[2] == call(LIST, call(LAZY, Ref("", "decodeNode")))

    def test_missing_lambda_breaker(self, strict_decoder, tree):
        with pytest.raises(UnbrokenRecursionError) as exc:
            generate(strict_decoder, CONTEXT, (), tree, declaration_name="decodeTree")
        assert exc.value.category == ErrorCategory.RECURSION
        assert exc.value.context["declarations"] == ["decodeTree"]

    def test_reference_under_lambda_needs_no_breaker(self, tree):
        entries = [
            *decoder_definitions(breaker=False),
            amend(
                "decoder",
                [
                    b.custom_type(
                        lambda _ctors, branches: Lambda(
                            (WildcardPattern(),), ListExpr(tuple(e for _, e in branches))
                        )
                    )
                ],
            ),
        ]
        decoder = resolve(CONTEXT, entries)[0]
        expression, _ = generate(decoder, CONTEXT, (), tree, declaration_name="decodeTree")
        assert isinstance(expression, Lambda)
