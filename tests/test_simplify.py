"""Tests for beta/eta simplification."""

import pytest

from typederive.expressions import (
    Call,
    Lambda,
    Literal,
    RecordExpr,
    TuplePattern,
    Var,
    VarPattern,
    call,
    lam,
    ref,
)
from typederive.simplify import simplify

F = ref("M.f")
G = ref("M.g")


class TestBeta:
    """Tests for beta reduction."""

    def test_substitutes_arguments(self):
        pair = lam(["a", "b"], RecordExpr((("x", Var("a")), ("y", Var("b")))))
        expr = call(pair, Literal(1), Literal(2))
        assert simplify(expr) == RecordExpr((("x", Literal(1)), ("y", Literal(2))))

    def test_partial_application_is_kept(self):
        expr = call(lam(["a", "b"], Var("a")), Literal(1))
        assert simplify(expr) == expr

    def test_destructuring_parameter_is_kept(self):
        fn = Lambda((TuplePattern((VarPattern("a"), VarPattern("b"))),), Var("a"))
        expr = call(fn, Var("pair"))
        assert simplify(expr) == expr

    def test_exposed_redex_is_reduced(self):
        apply_to_one = lam(["k"], call(Var("k"), Literal(1)))
        expr = call(apply_to_one, lam(["x"], RecordExpr((("v", Var("x")),))))
        assert simplify(expr) == RecordExpr((("v", Literal(1)),))

    def test_nested_redex(self):
        inner = call(lam(["x"], Var("x")), Literal(1))
        assert simplify(call(F, inner)) == call(F, Literal(1))


class TestEta:
    """Tests for eta reduction."""

    def test_single_parameter(self):
        assert simplify(lam(["x"], call(F, Var("x")))) == F

    def test_all_parameters(self):
        assert simplify(lam(["x", "y"], call(F, Var("x"), Var("y")))) == F

    def test_trailing_parameters_only(self):
        expr = lam(["x", "y"], call(F, Var("a"), Var("y")))
        assert simplify(expr) == lam(["x"], call(F, Var("a")))

    def test_swapped_arguments_are_kept(self):
        expr = lam(["x", "y"], call(F, Var("y"), Var("x")))
        assert simplify(expr) == expr

    def test_function_mentioning_parameter_is_kept(self):
        expr = lam(["x"], call(Var("x"), Var("x")))
        assert simplify(expr) == expr

    def test_dropped_parameter_used_by_kept_argument(self):
        expr = lam(["x"], call(F, Var("x"), Var("x")))
        assert simplify(expr) == expr

    def test_curried_application_is_flattened_first(self):
        expr = lam(["x"], call(call(G, Var("x")), Var("x")))
        assert simplify(expr) == expr

    def test_non_call_body_is_kept(self):
        expr = lam(["x"], RecordExpr((("v", Var("x")),)))
        assert simplify(expr) == expr

    def test_eta_inside_arguments(self):
        expr = call(ref("Json.Decode.map"), lam(["x"], call(G, Var("x"))), F)
        assert simplify(expr) == call(ref("Json.Decode.map"), G, F)

    def test_eta_exposing_redex_is_reduced(self):
        inner = lam(["a"], call(G, Var("a"), Var("a")))
        expr = lam(["x"], call(inner, Var("y"), Var("x")))
        assert simplify(expr) == call(G, Var("y"), Var("y"))


class TestIdempotence:
    """simplify(simplify(e)) == simplify(e)."""

    @pytest.mark.parametrize(
        "expr",
        [
            call(lam(["x"], call(F, Var("x"))), Literal(1)),
            lam(["x", "y"], call(F, Var("a"), Var("y"))),
            call(lam(["k"], call(Var("k"), Literal(1))), lam(["x"], call(G, Var("x")))),
            Call(F, (lam(["x"], Var("x")),)),
            lam(["x"], call(lam(["a"], call(G, Var("a"), Var("a"))), Var("y"), Var("x"))),
        ],
    )
    def test_idempotent(self, expr):
        once = simplify(expr)
        assert simplify(once) == once
