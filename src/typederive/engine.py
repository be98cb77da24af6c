"""High-level derivation engine.

DeriveEngine ties the pieces together for one activation context:

    registry = resolve(context, definitions)
    generator, child = find_generator(registry, annotation)
    expression, auxiliary = generate(generator, context, providers, child, ...)
    declarations = [normalize(d) for d in (primary, *auxiliary)]

Failures never escape ``derive``: they are reported through GenerationResult.

Usage:
    from typederive import DeriveEngine, ActivationContext
    from typederive.generators import builtin_definitions

    engine = DeriveEngine(builtin_definitions(), ActivationContext.of("elm/json"))
    result = engine.derive("decodePerson", annotation)
    if result.success:
        print(result.render())
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .composer import generate
from .declarations import Declaration, normalize
from .errors import ErrorCategory, ErrorResult, GenerationError, NoGeneratorError
from .expressions import Pattern
from .logging import get_logger
from .providers import KnownProvider
from .registry import GeneratorEntry, ResolvedGenerator, find_generator, get_generator, resolve
from .resolvers import ActivationContext
from .types import ResolvedType, render_type

if TYPE_CHECKING:
    from .config import TypederiveConfig

logger = get_logger("engine")


@dataclass
class GenerationResult:
    """Result of deriving one declaration.

    On success ``declaration`` holds the requested declaration and
    ``auxiliary`` the helpers it relies on, in emission order. On failure
    ``diagnostic`` carries the structured error, including its suggestion.
    """

    success: bool
    declaration: Declaration | None = None
    auxiliary: list[Declaration] = field(default_factory=list)
    generator_id: str | None = None
    error: str | None = None
    category: ErrorCategory | None = None
    diagnostic: ErrorResult | None = None

    @property
    def declarations(self) -> list[Declaration]:
        if self.declaration is None:
            return []
        return [self.declaration, *self.auxiliary]

    def render(self) -> str:
        """All declarations as source text, separated by blank lines."""
        return "\n\n".join(d.render() for d in self.declarations)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "generator": self.generator_id,
            "declarations": [
                {"name": d.name, "source": d.render()} for d in self.declarations
            ],
            "error": self.error,
            "category": self.category.name if self.category else None,
            "diagnostic": self.diagnostic.to_dict() if self.diagnostic else None,
        }


class DeriveEngine:
    """Derives declarations from annotations for one activation context.

    The registry is resolved once at construction.
    """

    def __init__(
        self,
        definitions: Sequence[GeneratorEntry],
        context: ActivationContext | None = None,
    ):
        self.context = context or ActivationContext()
        self.registry: list[ResolvedGenerator] = resolve(self.context, definitions)

    @classmethod
    def from_config(cls, config: TypederiveConfig) -> DeriveEngine:
        """Engine over the built-in generators enabled by ``config``."""
        return cls(config.definitions(), config.build_context())

    def generator(self, id: str) -> ResolvedGenerator | None:
        return get_generator(self.registry, id)

    def find_generator(self, annotation: ResolvedType) -> tuple[ResolvedGenerator, ResolvedType]:
        """Generator responsible for ``annotation``, with the extracted child type.

        Raises:
            NoGeneratorError: If no generator pattern matches
        """
        found = find_generator(self.registry, annotation)
        if found is None:
            raise NoGeneratorError(render_type(annotation))
        return found

    def derive(
        self,
        name: str,
        annotation: ResolvedType,
        providers: Sequence[KnownProvider] = (),
        params: Sequence[Pattern] = (),
        reserved_names: Sequence[str] = (),
    ) -> GenerationResult:
        """Derive the declaration ``name : annotation``.

        Args:
            name: Name of the declaration to produce
            annotation: Its declared type, e.g. ``Json.Decode.Decoder Person``
            providers: Existing implementations to reuse instead of synthesizing
            params: Formal parameters the declaration is already written with
            reserved_names: Names auxiliary declarations must not take, e.g. the
                declarations already defined in the target module
        """
        log = logger.with_declaration(name).with_operation("derive")
        generator_id: str | None = None
        with log.timed("derive", annotation=render_type(annotation)):
            try:
                generator, child = self.find_generator(annotation)
                generator_id = generator.id
                expression, auxiliary = generate(
                    generator,
                    self.context,
                    providers,
                    child,
                    declaration_name=name,
                    reserved_names=reserved_names,
                )
            except GenerationError as e:
                log.warning(
                    "Derivation failed",
                    generator=generator_id,
                    category=e.category.name,
                    error=str(e),
                )
                return GenerationResult(
                    success=False,
                    generator_id=generator_id,
                    error=str(e),
                    category=e.category,
                    diagnostic=e.to_result(),
                )

        primary = Declaration(
            name=name, body=expression, params=tuple(params), annotation=annotation
        )
        declarations = [normalize(d) for d in (primary, *auxiliary)]
        log.with_operation("normalize").debug(
            "Normalized declarations", count=len(declarations)
        )
        return GenerationResult(
            success=True,
            declaration=declarations[0],
            auxiliary=declarations[1:],
            generator_id=generator_id,
        )
