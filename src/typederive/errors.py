"""Diagnostics raised while deriving code.

Every composition failure is a single, non-retryable diagnostic naming the
offending type or constructor. There is no partial success: the first failing
child aborts the whole derivation.

Usage:
    from typederive.errors import GenerationError

    try:
        expression, auxiliary = generate(generator, context, providers, target)
    except GenerationError as e:
        print(e.to_result().to_compact())
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class ErrorCategory(Enum):
    """Categories of derivation failures."""

    GENERIC_VARIABLE = auto()  # Unresolved type variable
    FUNCTION_TYPE = auto()  # Function types cannot be derived
    GENERIC_ALIAS = auto()  # Type alias with parameters
    GENERIC_CUSTOM_TYPE = auto()  # Custom type with parameters
    TUPLE_ARITY = auto()  # Tuples other than 0, 2 or 3 items
    NO_RESOLVER = auto()  # Nothing in the registry handles the type
    UNSUPPORTED = auto()  # Any other unmatched shape
    NO_GENERATOR = auto()  # Annotation matches no generator pattern
    RECURSION = auto()  # Eager self-reference without a lambda-breaker


@dataclass
class ErrorResult:
    """Structured error result, suitable for reporting."""

    category: ErrorCategory
    message: str
    suggestion: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "category": self.category.name,
            "message": self.message,
            "suggestion": self.suggestion,
            "context": self.context,
        }

    def to_compact(self) -> str:
        """Format as compact string."""
        parts = [f"[{self.category.name}] {self.message}"]
        if self.suggestion:
            parts.append(f"  Try: {self.suggestion}")
        return "\n".join(parts)


class TypederiveError(Exception):
    """Base exception for typederive."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNSUPPORTED,
        suggestion: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.suggestion = suggestion
        self.context = context or {}

    def to_result(self) -> ErrorResult:
        """Convert to ErrorResult."""
        return ErrorResult(
            category=self.category,
            message=str(self),
            suggestion=self.suggestion,
            context=self.context,
        )


class GenerationError(TypederiveError):
    """A derivation could not be completed."""


class UnsupportedTypeError(GenerationError):
    """The type has a shape the composer deliberately rejects."""


class IllegalTupleArityError(GenerationError):
    """Only unit, pairs and triples exist."""

    def __init__(self, arity: int):
        super().__init__(
            f"Illegal tuple arity: {arity}",
            category=ErrorCategory.TUPLE_ARITY,
            context={"arity": arity},
        )


class NoResolverError(GenerationError):
    """No resolver in the registry accepted the type."""

    def __init__(self, subject: str, generator_id: str):
        super().__init__(
            f"Don't know how to implement {subject}",
            category=ErrorCategory.NO_RESOLVER,
            suggestion=f"Register a resolver for it in the '{generator_id}' generator",
            context={"subject": subject, "generator": generator_id},
        )


class NoGeneratorError(GenerationError):
    """The requested annotation matches no resolved generator."""

    def __init__(self, annotation: str):
        super().__init__(
            f"No generator matches {annotation}",
            category=ErrorCategory.NO_GENERATOR,
            suggestion="Check the annotation and the enabled capabilities",
            context={"annotation": annotation},
        )


class UnbrokenRecursionError(GenerationError):
    """Declarations refer to each other eagerly and nothing defers the cycle."""

    def __init__(self, names: list[str], generator_id: str):
        cycle = ", ".join(names)
        super().__init__(
            f"Recursive declarations {cycle} would loop forever: "
            f"generator '{generator_id}' has no lambda-breaker",
            category=ErrorCategory.RECURSION,
            suggestion="Add a lambda_breaker definition to the generator",
            context={"declarations": names, "generator": generator_id},
        )
