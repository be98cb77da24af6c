"""The resolution engine.

Given a resolved generator and a target type, the composer builds one
expression implementing the generator for that type, recursing into child
types and emitting auxiliary declarations for named types met below the top
level.

Resolution order at every type node:
1. a known provider for exactly this type is referenced directly
2. universal resolvers, in registry order
3. the shape-specific rule (primitive, record, tuple, custom type, ...)

Named types (custom types and record aliases) met below the top level become
auxiliary declarations, kept in an ordered arena keyed by type. A named type
met again while it is still being composed resolves to a reference to its
reserved name, so composition terminates for recursive types.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from .declarations import Declaration
from .errors import (
    ErrorCategory,
    IllegalTupleArityError,
    NoResolverError,
    UnsupportedTypeError,
)
from .expressions import Expr, RecordExpr, Ref, TupleExpr, Var, lam, render
from .logging import get_logger
from .providers import KnownProvider, find_provider
from .recursion import resolve_recursion
from .registry import ResolvedGenerator
from .resolvers import (
    ActivationContext,
    CombinerResolver,
    CustomTypeResolver,
    PrimitiveResolver,
    UniversalResolver,
)
from .types import (
    UNIT,
    CustomType,
    FunctionType,
    GenericVar,
    NamedType,
    Opaque,
    QualifiedName,
    Record,
    ResolvedType,
    TupleType,
    TypeAlias,
    reference_type,
    render_type,
)

logger = get_logger("composer")

PAIR = Ref("Tuple", "pair")
TRIPLE_NAMES = ("a", "b", "c")


@dataclass(frozen=True)
class Composition:
    """Composer output before simplification."""

    expression: Expr
    declarations: tuple[Declaration, ...]


class Composer:
    """Builds expressions for one generator, one request at a time.

    Holds the declaration arena for the request. Create a new composer per
    top-level declaration; the generator, context and providers are only read.
    """

    def __init__(
        self,
        generator: ResolvedGenerator,
        context: ActivationContext,
        providers: Sequence[KnownProvider] = (),
        declaration_name: str | None = None,
        reserved_names: Iterable[str] = (),
    ):
        self.generator = generator
        self.context = context
        self.providers = tuple(providers)
        self.declaration_name = declaration_name
        self._log = logger.with_context(generator=generator.id)
        if declaration_name:
            self._log = self._log.with_declaration(declaration_name)

        self._declarations: list[Declaration] = []
        self._names: dict[QualifiedName, str] = {}
        self._used_names: set[str] = set(reserved_names)
        if declaration_name:
            self._used_names.add(declaration_name)

    def compose(self, target: ResolvedType, top_level: bool = True) -> Composition:
        """Compose ``target``.

        Raises:
            GenerationError: On the first type that cannot be composed
        """
        self._log.debug(
            "Composing",
            type=render_type(target),
            capabilities=",".join(sorted(self.context.capabilities)),
        )
        expression = self._generate(target, top_level)
        return Composition(expression, tuple(self._declarations))

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _generate(self, t: ResolvedType, top_level: bool) -> Expr:
        provider = find_provider(self.providers, self.generator.id, t)
        if provider is not None:
            self._log.debug("Using provider", type=render_type(t), provider=str(provider.location))
            return Ref(provider.location.module, provider.location.name)

        universal = self._universal(t)
        if universal is not None:
            return universal

        if isinstance(t, GenericVar):
            raise UnsupportedTypeError(
                f"Generic type variable {t.name} is not supported",
                category=ErrorCategory.GENERIC_VARIABLE,
                suggestion="Write the generator for a concrete type instead",
            )
        if isinstance(t, Opaque):
            return self._opaque(t)
        if isinstance(t, FunctionType):
            raise UnsupportedTypeError(
                f"Function types are not supported: {render_type(t)}",
                category=ErrorCategory.FUNCTION_TYPE,
            )
        if isinstance(t, TypeAlias):
            return self._alias(t, top_level)
        if isinstance(t, Record):
            return self._record(t)
        if isinstance(t, TupleType):
            return self._tuple(t)
        if isinstance(t, CustomType):
            return self._custom_type(t, top_level)
        raise UnsupportedTypeError(f"Unsupported type: {t!r}")

    def _universal(self, t: ResolvedType) -> Expr | None:
        for resolver in self.generator.resolvers:
            if isinstance(resolver, UniversalResolver):
                result = resolver.build(t)
                if result is not None:
                    self._resolved(t, resolver.label)
                    return result
        return None

    def _opaque(self, t: Opaque) -> Expr:
        children = tuple(self._generate(arg, False) for arg in t.args)
        for resolver in self.generator.resolvers:
            if isinstance(resolver, PrimitiveResolver) and resolver.ref == t.ref:
                result = resolver.build(t.args, children)
                if result is not None:
                    self._resolved(t, resolver.label)
                    return result
        raise NoResolverError(render_type(t), self.generator.id)

    def _alias(self, t: TypeAlias, top_level: bool) -> Expr:
        if t.params:
            raise UnsupportedTypeError(
                f"Type aliases with generic parameters are not supported: {render_type(t)}",
                category=ErrorCategory.GENERIC_ALIAS,
            )
        aliased = t.aliased
        if aliased is None:
            raise UnsupportedTypeError(f"Type alias {t.ref} has no definition")
        if isinstance(aliased, Record):
            return self._named(t, top_level, lambda: self._record(aliased))
        return self._generate(aliased, top_level)

    def _record(self, t: Record) -> Expr:
        names = [name for name, _ in t.fields]
        ctor: Expr = RecordExpr(tuple((name, Var(name)) for name in names))
        if names:
            ctor = lam(names, ctor)
        return self._combine(t, ctor, [field_type for _, field_type in t.fields])

    def _tuple(self, t: TupleType) -> Expr:
        arity = len(t.items)
        if arity == 0:
            return self._generate(Opaque(UNIT), False)
        if arity == 2:
            return self._combine(t, PAIR, list(t.items))
        if arity == 3:
            ctor: Expr = lam(TRIPLE_NAMES, TupleExpr(tuple(Var(n) for n in TRIPLE_NAMES)))
            return self._combine(t, ctor, list(t.items))
        raise IllegalTupleArityError(arity)

    def _custom_type(self, t: CustomType, top_level: bool) -> Expr:
        if t.params:
            raise UnsupportedTypeError(
                f"Custom types with generic parameters are not supported: {render_type(t)}",
                category=ErrorCategory.GENERIC_CUSTOM_TYPE,
            )
        if not t.constructors:
            raise UnsupportedTypeError(
                f"Custom type {render_type(t)} has no constructors",
                suggestion="Describe at least one constructor for the type",
            )

        def compose() -> Expr:
            branches = tuple(
                (ctor.ref.name, self._combine(t, Ref(ctor.ref.module, ctor.ref.name), ctor.args))
                for ctor in t.constructors
            )
            for resolver in self.generator.resolvers:
                if isinstance(resolver, CustomTypeResolver):
                    self._resolved(t, resolver.label)
                    return resolver.build(t.constructors, branches)
            raise NoResolverError(render_type(t), self.generator.id)

        return self._named(t, top_level, compose)

    def _combine(self, t: ResolvedType, ctor: Expr, child_types: Sequence[ResolvedType]) -> Expr:
        """Generate every child, then ask the combiners to merge them with ``ctor``."""
        children = tuple(self._generate(child, False) for child in child_types)
        for resolver in self.generator.resolvers:
            if isinstance(resolver, CombinerResolver):
                result = resolver.build(t, ctor, children)
                if result is not None:
                    self._resolved(t, resolver.label)
                    return result
        raise NoResolverError(render(ctor), self.generator.id)

    # -------------------------------------------------------------------------
    # Declaration arena
    # -------------------------------------------------------------------------

    def _named(self, t: NamedType, top_level: bool, compose: Callable[[], Expr]) -> Expr:
        if top_level:
            if self.declaration_name:
                self._names[t.ref] = self.declaration_name
            return compose()

        name = self._names.get(t.ref)
        if name is not None:
            return Ref("", name)

        name = self._fresh_name(self.generator.make_name(t.ref.name))
        self._names[t.ref] = name
        body = compose()

        annotation = self.generator.pattern.rebuild(reference_type(t))
        self._declarations.append(Declaration(name=name, body=body, annotation=annotation))
        self._log.debug("Added auxiliary declaration", name=name, type=str(t.ref))
        return Ref("", name)

    def _fresh_name(self, base: str) -> str:
        name = base
        suffix = 2
        while name in self._used_names:
            name = f"{base}{suffix}"
            suffix += 1
        self._used_names.add(name)
        return name

    def _resolved(self, t: ResolvedType, label: str) -> None:
        if self._log.is_enabled_for(logging.DEBUG):
            self._log.debug("Resolved", type=render_type(t), resolver=label)


def generate(
    generator: ResolvedGenerator,
    context: ActivationContext,
    providers: Sequence[KnownProvider],
    target: ResolvedType,
    *,
    top_level: bool = True,
    declaration_name: str | None = None,
    reserved_names: Iterable[str] = (),
) -> tuple[Expr, list[Declaration]]:
    """Build the expression for ``target`` plus the auxiliary declarations it needs.

    Eager cycles among the declarations, including the requested one when
    ``declaration_name`` is given, are deferred through the generator's
    lambda-breaker. Auxiliary declarations never take a name from
    ``reserved_names``, e.g. names already defined in the target module.

    Raises:
        GenerationError: If any part of ``target`` cannot be composed, or a
            cycle needs a lambda-breaker the generator lacks
    """
    composer = Composer(
        generator,
        context,
        providers,
        declaration_name=declaration_name,
        reserved_names=reserved_names,
    )
    composition = composer.compose(target, top_level=top_level)
    declarations = list(composition.declarations)
    if declaration_name:
        declarations.insert(0, Declaration(name=declaration_name, body=composition.expression))
    declarations = resolve_recursion(declarations, generator.lambda_breaker, generator.id)
    if declaration_name:
        return declarations[0].body, declarations[1:]
    return composition.expression, declarations


__all__ = ["PAIR", "Composer", "Composition", "generate"]
