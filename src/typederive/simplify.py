"""Post-composition simplification.

Two rewrite rules, applied bottom-up in a single pass:

- beta: ``(\\a b -> body) x y`` becomes ``body`` with ``a := x, b := y``, when the
  argument count equals the parameter count and every parameter is a simple
  bind
- eta: ``\\a b -> f a b`` becomes ``f``, dropping trailing parameters that are
  passed straight through, as long as ``f`` does not mention any parameter

Substitution is name-indexed, not capture-avoiding. That is safe for composer
output, whose synthesized lambdas never shadow names used by their arguments.
"""

from __future__ import annotations

from .expressions import (
    Call,
    Expr,
    Lambda,
    Var,
    VarPattern,
    bound_names,
    call,
    free_vars,
    is_simple,
    substitute,
    transform,
)


def simplify(expr: Expr) -> Expr:
    """Simplify ``expr``. ``simplify(simplify(e)) == simplify(e)``."""
    return transform(expr, _reduce)


def _reduce(node: Expr) -> Expr:
    if isinstance(node, Call):
        return _beta(node)
    if isinstance(node, Lambda):
        return _eta(node)
    return node


def _beta(node: Call) -> Expr:
    fn = node.fn
    if not isinstance(fn, Lambda):
        return node
    if len(fn.params) != len(node.args) or not is_simple(fn.params):
        return node
    names = [p.name for p in fn.params]  # type: ignore[attr-defined]
    mapping = dict(zip(names, node.args, strict=True))
    # Substitution can expose new redexes, e.g. a lambda argument landing in call position
    return simplify(substitute(fn.body, mapping))


def _eta(node: Lambda) -> Expr:
    body = node.body
    if not isinstance(body, Call):
        return node

    names: set[str] = set()
    for param in node.params:
        names |= bound_names(param)
    if names & free_vars(body.fn):
        return node

    matched = 0
    for param, arg in zip(reversed(node.params), reversed(body.args)):
        if not (isinstance(param, VarPattern) and isinstance(arg, Var) and arg.name == param.name):
            break
        matched += 1

    # A dropped parameter must not be used by the arguments that stay
    while matched:
        dropped = {p.name for p in node.params[-matched:]}  # type: ignore[attr-defined]
        kept_args = body.args[:-matched]
        if not any(dropped & free_vars(a) for a in kept_args):
            break
        matched -= 1

    if not matched:
        return node

    # Dropping arguments can leave a saturated redex behind
    core = _reduce(call(body.fn, *body.args[:-matched]))
    kept_params = node.params[:-matched]
    if not kept_params:
        return core
    return _reduce(Lambda(kept_params, core))
