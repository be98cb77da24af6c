"""Expression and pattern trees for synthesized code.

Synthesized code is held as an immutable tree rather than text. The tree is
rendered to ML-style source (``\\a b -> f a b``) only for diagnostics and for
printing declarations.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

# =============================================================================
# Patterns
# =============================================================================


class Pattern:
    """Base class for binding patterns."""

    __slots__ = ()


@dataclass(frozen=True)
class VarPattern(Pattern):
    """A simple bind."""

    name: str


@dataclass(frozen=True)
class WildcardPattern(Pattern):
    pass


@dataclass(frozen=True)
class TuplePattern(Pattern):
    items: tuple[Pattern, ...]


@dataclass(frozen=True)
class RecordPattern(Pattern):
    fields: tuple[str, ...]


@dataclass(frozen=True)
class ConstructorPattern(Pattern):
    module: str
    name: str
    args: tuple[Pattern, ...] = ()


@dataclass(frozen=True)
class LiteralPattern(Pattern):
    value: str | int


def bound_names(pattern: Pattern) -> frozenset[str]:
    """Names a pattern binds."""
    if isinstance(pattern, VarPattern):
        return frozenset({pattern.name})
    if isinstance(pattern, RecordPattern):
        return frozenset(pattern.fields)
    if isinstance(pattern, TuplePattern | ConstructorPattern):
        items = pattern.items if isinstance(pattern, TuplePattern) else pattern.args
        names: set[str] = set()
        for item in items:
            names |= bound_names(item)
        return frozenset(names)
    return frozenset()


# =============================================================================
# Expressions
# =============================================================================


class Expr:
    """Base class for expressions."""

    __slots__ = ()


@dataclass(frozen=True)
class Ref(Expr):
    """Reference to a top-level value. ``module == ""`` is a local declaration."""

    module: str
    name: str


@dataclass(frozen=True)
class Var(Expr):
    """A locally bound variable."""

    name: str


@dataclass(frozen=True)
class Call(Expr):
    fn: Expr
    args: tuple[Expr, ...]


@dataclass(frozen=True)
class Lambda(Expr):
    params: tuple[Pattern, ...]
    body: Expr


@dataclass(frozen=True)
class RecordExpr(Expr):
    fields: tuple[tuple[str, Expr], ...]


@dataclass(frozen=True)
class TupleExpr(Expr):
    items: tuple[Expr, ...]


@dataclass(frozen=True)
class ListExpr(Expr):
    items: tuple[Expr, ...]


@dataclass(frozen=True)
class Literal(Expr):
    value: str | int | float


@dataclass(frozen=True)
class FieldAccess(Expr):
    subject: Expr
    field: str


@dataclass(frozen=True)
class Pipe(Expr):
    """``left |> right``"""

    left: Expr
    right: Expr


@dataclass(frozen=True)
class Case(Expr):
    subject: Expr
    branches: tuple[tuple[Pattern, Expr], ...]


def ref(dotted: str) -> Ref:
    """Shorthand: ``ref("Json.Decode.int")``."""
    module, _, name = dotted.rpartition(".")
    return Ref(module, name)


def call(fn: Expr, *args: Expr) -> Expr:
    """Apply ``fn`` to ``args``, flattening nested applications."""
    if not args:
        return fn
    if isinstance(fn, Call):
        return Call(fn.fn, fn.args + args)
    return Call(fn, args)


def lam(names: Iterable[str], body: Expr) -> Lambda:
    """Lambda with simple binds only."""
    return Lambda(tuple(VarPattern(n) for n in names), body)


def is_simple(params: Iterable[Pattern]) -> bool:
    return all(isinstance(p, VarPattern) for p in params)


# =============================================================================
# Traversal
# =============================================================================


def children(expr: Expr) -> tuple[Expr, ...]:
    """Direct sub-expressions, in source order."""
    if isinstance(expr, Call):
        return (expr.fn, *expr.args)
    if isinstance(expr, Lambda):
        return (expr.body,)
    if isinstance(expr, RecordExpr):
        return tuple(value for _, value in expr.fields)
    if isinstance(expr, TupleExpr | ListExpr):
        return expr.items
    if isinstance(expr, FieldAccess):
        return (expr.subject,)
    if isinstance(expr, Pipe):
        return (expr.left, expr.right)
    if isinstance(expr, Case):
        return (expr.subject, *(body for _, body in expr.branches))
    return ()


def map_children(expr: Expr, fn: Callable[[Expr], Expr]) -> Expr:
    """Rebuild ``expr`` with ``fn`` applied to each direct sub-expression."""
    if isinstance(expr, Call):
        return call(fn(expr.fn), *(fn(a) for a in expr.args))
    if isinstance(expr, Lambda):
        return Lambda(expr.params, fn(expr.body))
    if isinstance(expr, RecordExpr):
        return RecordExpr(tuple((name, fn(value)) for name, value in expr.fields))
    if isinstance(expr, TupleExpr):
        return TupleExpr(tuple(fn(i) for i in expr.items))
    if isinstance(expr, ListExpr):
        return ListExpr(tuple(fn(i) for i in expr.items))
    if isinstance(expr, FieldAccess):
        return FieldAccess(fn(expr.subject), expr.field)
    if isinstance(expr, Pipe):
        return Pipe(fn(expr.left), fn(expr.right))
    if isinstance(expr, Case):
        return Case(
            fn(expr.subject),
            tuple((pattern, fn(body)) for pattern, body in expr.branches),
        )
    return expr


def transform(expr: Expr, fn: Callable[[Expr], Expr]) -> Expr:
    """Bottom-up rewrite: children first, then ``fn`` on the rebuilt node."""
    return fn(map_children(expr, lambda child: transform(child, fn)))


def free_vars(expr: Expr) -> frozenset[str]:
    """Variables referenced but not bound within ``expr``."""
    if isinstance(expr, Var):
        return frozenset({expr.name})
    if isinstance(expr, Lambda):
        bound: set[str] = set()
        for param in expr.params:
            bound |= bound_names(param)
        return free_vars(expr.body) - bound
    if isinstance(expr, Case):
        names = set(free_vars(expr.subject))
        for pattern, body in expr.branches:
            names |= free_vars(body) - bound_names(pattern)
        return frozenset(names)
    names = set()
    for child in children(expr):
        names |= free_vars(child)
    return frozenset(names)


def substitute(expr: Expr, mapping: Mapping[str, Expr]) -> Expr:
    """Replace free variables by name.

    Substitution stops under binders that shadow a name. It does not rename
    binders, so the replacements must not mention names bound inside ``expr``.
    """
    if not mapping:
        return expr
    if isinstance(expr, Var):
        return mapping.get(expr.name, expr)
    if isinstance(expr, Lambda):
        shadowed: set[str] = set()
        for param in expr.params:
            shadowed |= bound_names(param)
        inner = {k: v for k, v in mapping.items() if k not in shadowed}
        return Lambda(expr.params, substitute(expr.body, inner))
    if isinstance(expr, Case):
        branches = []
        for pattern, body in expr.branches:
            names = bound_names(pattern)
            inner = {k: v for k, v in mapping.items() if k not in names}
            branches.append((pattern, substitute(body, inner)))
        return Case(substitute(expr.subject, mapping), tuple(branches))
    return map_children(expr, lambda child: substitute(child, mapping))


# =============================================================================
# Rendering
# =============================================================================


def render_pattern(pattern: Pattern, nested: bool = False) -> str:
    if isinstance(pattern, VarPattern):
        return pattern.name
    if isinstance(pattern, WildcardPattern):
        return "_"
    if isinstance(pattern, TuplePattern):
        return f"( {', '.join(render_pattern(p) for p in pattern.items)} )"
    if isinstance(pattern, RecordPattern):
        return f"{{ {', '.join(pattern.fields)} }}"
    if isinstance(pattern, LiteralPattern):
        return _render_literal(pattern.value)
    if isinstance(pattern, ConstructorPattern):
        name = f"{pattern.module}.{pattern.name}" if pattern.module else pattern.name
        if not pattern.args:
            return name
        text = " ".join([name, *(render_pattern(a, nested=True) for a in pattern.args)])
        return f"({text})" if nested else text
    raise TypeError(f"Not a pattern: {pattern!r}")


def render(expr: Expr) -> str:
    """Render an expression as single-line source text."""
    if isinstance(expr, Ref):
        return f"{expr.module}.{expr.name}" if expr.module else expr.name
    if isinstance(expr, Var):
        return expr.name
    if isinstance(expr, Literal):
        return _render_literal(expr.value)
    if isinstance(expr, Call):
        return " ".join([_render_operand(expr.fn), *(_render_operand(a) for a in expr.args)])
    if isinstance(expr, Lambda):
        params = " ".join(render_pattern(p, nested=True) for p in expr.params)
        return f"\\{params} -> {render(expr.body)}"
    if isinstance(expr, RecordExpr):
        if not expr.fields:
            return "{}"
        inner = ", ".join(f"{name} = {render(value)}" for name, value in expr.fields)
        return f"{{ {inner} }}"
    if isinstance(expr, TupleExpr):
        if not expr.items:
            return "()"
        return f"( {', '.join(render(i) for i in expr.items)} )"
    if isinstance(expr, ListExpr):
        if not expr.items:
            return "[]"
        return f"[ {', '.join(render(i) for i in expr.items)} ]"
    if isinstance(expr, FieldAccess):
        return f"{_render_operand(expr.subject)}.{expr.field}"
    if isinstance(expr, Pipe):
        right = render(expr.right)
        if isinstance(expr.right, Lambda | Case | Pipe):
            right = f"({right})"
        left = render(expr.left)
        if isinstance(expr.left, Lambda | Case):
            left = f"({left})"
        return f"{left} |> {right}"
    if isinstance(expr, Case):
        branches = "; ".join(
            f"{render_pattern(p)} -> {render(body)}" for p, body in expr.branches
        )
        return f"case {render(expr.subject)} of {branches}"
    raise TypeError(f"Not an expression: {expr!r}")


def _render_operand(expr: Expr) -> str:
    text = render(expr)
    if isinstance(expr, Call | Lambda | Pipe | Case):
        return f"({text})"
    if isinstance(expr, Literal) and isinstance(expr.value, int | float) and expr.value < 0:
        return f"({text})"
    return text


def _render_literal(value: str | int | float) -> str:
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return str(value)
