"""Generator definitions and the resolved registry.

Generators are declared as an ordered list of ``generic(...)`` definitions and
``amend(...)`` amendments. ``resolve()`` folds that list, together with the
activation context, into the registry the composer consults:

- resolvers inside a generator are tried last-registered first
- amendment resolvers are tried before the generator's own resolvers, and a
  later amendment before an earlier one
- definitions whose condition is unmet are dropped
- a generator whose required dependency is missing is dropped entirely
- amendments for an id that never resolves are discarded without error
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from .patterns import TypePattern
from .resolvers import ActivationContext, Definition, LambdaBreaker, Resolver
from .types import QualifiedName, ResolvedType

logger = logging.getLogger(__name__)


# =============================================================================
# Definitions
# =============================================================================


@dataclass(frozen=True)
class GenericDefinition:
    """A generator: what it matches, how it names helpers, how it resolves.

    Attributes:
        id: Unique key, also the target of amendments
        pattern: Search pattern with exactly one target hole
        make_name: Builds an auxiliary declaration name from a type name
        definitions: Resolvers and lambda-breakers, in registration order
        dependency: Capability the whole generator requires (None = always)
        blessed: Known external implementations, used by provider lookup tools
    """

    id: str
    pattern: TypePattern
    make_name: Callable[[str], str]
    definitions: tuple[Definition, ...]
    dependency: str | None = None
    blessed: frozenset[QualifiedName] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Amendment:
    """Extra definitions for an existing generator, taking precedence over it."""

    id: str
    definitions: tuple[Definition, ...]


GeneratorEntry = GenericDefinition | Amendment


def generic(
    id: str,
    pattern: TypePattern,
    make_name: Callable[[str], str],
    definitions: Iterable[Definition],
    *,
    dependency: str | None = None,
    blessed: Iterable[QualifiedName] = (),
) -> GenericDefinition:
    """Define a generator.

    Raises:
        ValueError: If the pattern does not hold exactly one target
    """
    targets = pattern.target_count()
    if targets != 1:
        raise ValueError(f"Generator '{id}' pattern must hold exactly one target, found {targets}")
    return GenericDefinition(
        id=id,
        pattern=pattern,
        make_name=make_name,
        definitions=tuple(definitions),
        dependency=dependency,
        blessed=frozenset(blessed),
    )


def amend(id: str, definitions: Iterable[Definition]) -> Amendment:
    """Add definitions to the generator with the same id."""
    return Amendment(id=id, definitions=tuple(definitions))


# =============================================================================
# Resolved registry
# =============================================================================


@dataclass(frozen=True)
class ResolvedGenerator:
    """A generator with its final, ordered resolver list for one run."""

    id: str
    pattern: TypePattern
    make_name: Callable[[str], str]
    resolvers: tuple[Resolver, ...]
    lambda_breaker: LambdaBreaker | None = None
    blessed: frozenset[QualifiedName] = field(default_factory=frozenset)


def resolve(
    context: ActivationContext,
    entries: Sequence[GeneratorEntry],
) -> list[ResolvedGenerator]:
    """Build the registry for ``context`` from declared generators and amendments.

    Entries are walked in reverse so that pending amendments are known by the
    time their generator is reached. Reading the accumulated generators back
    in reverse restores declaration order.
    """
    pending: dict[str, list[tuple[Definition, ...]]] = {}
    accumulated: list[ResolvedGenerator] = []

    for entry in reversed(entries):
        if isinstance(entry, Amendment):
            pending.setdefault(entry.id, []).append(entry.definitions)
            continue

        batches = pending.pop(entry.id, [])

        if entry.dependency is not None and not context.has(entry.dependency):
            logger.debug(
                "Dropping generator %s: missing dependency %s (%d amendments discarded)",
                entry.id,
                entry.dependency,
                len(batches),
            )
            continue

        ordered: list[Definition] = []
        for batch in batches:
            ordered.extend(_active_reversed(batch, context))
        ordered.extend(_active_reversed(entry.definitions, context))

        resolvers = tuple(d for d in ordered if not isinstance(d, LambdaBreaker))
        breaker = next((d for d in ordered if isinstance(d, LambdaBreaker)), None)

        accumulated.append(
            ResolvedGenerator(
                id=entry.id,
                pattern=entry.pattern,
                make_name=entry.make_name,
                resolvers=resolvers,
                lambda_breaker=breaker,
                blessed=entry.blessed,
            )
        )
        logger.debug(
            "Resolved generator %s: %d resolvers, lambda-breaker=%s",
            entry.id,
            len(resolvers),
            breaker is not None,
        )

    for dead_id in pending:
        logger.debug("Discarding amendment for unknown generator %s", dead_id)

    accumulated.reverse()
    return accumulated


def _active_reversed(
    definitions: tuple[Definition, ...],
    context: ActivationContext,
) -> list[Definition]:
    return [d for d in reversed(definitions) if d.condition.is_active(context)]


def find_generator(
    registry: Iterable[ResolvedGenerator],
    annotation: ResolvedType,
) -> tuple[ResolvedGenerator, ResolvedType] | None:
    """First generator whose pattern matches ``annotation``, with the extracted child."""
    for generator in registry:
        child = generator.pattern.match(annotation)
        if child is not None:
            return generator, child
    return None


def get_generator(registry: Iterable[ResolvedGenerator], id: str) -> ResolvedGenerator | None:
    """Get a resolved generator by id."""
    return next((g for g in registry if g.id == id), None)
