"""typederive: rule-driven synthesis of type-directed code.

Given a type and a generator (decoder, encoder, random generator, ...),
typederive composes an implementation from small resolvers, emits helper
declarations for named and recursive types, and simplifies the result.

Example:
    from typederive import ActivationContext, DeriveEngine
    from typederive.generators import builtin_definitions
    from typederive.types import CustomType, Constructor, QualifiedName, opaque

    color = CustomType(
        QualifiedName("Main", "Color"),
        constructors=(
            Constructor(QualifiedName("Main", "Red")),
            Constructor(QualifiedName("Main", "Green")),
        ),
    )
    engine = DeriveEngine(builtin_definitions(), ActivationContext.of("elm/json"))
    result = engine.derive("decodeColor", opaque("Json.Decode.Decoder", color))
    print(result.render())
"""

from .composer import Composer, generate
from .declarations import Declaration, normalize
from .engine import DeriveEngine, GenerationResult
from .errors import (
    ErrorCategory,
    GenerationError,
    IllegalTupleArityError,
    NoGeneratorError,
    NoResolverError,
    TypederiveError,
    UnbrokenRecursionError,
    UnsupportedTypeError,
)
from .providers import KnownProvider
from .registry import amend, find_generator, generic, resolve
from .resolvers import ActivationContext
from .simplify import simplify

__version__ = "0.1.0"

__all__ = [
    "ActivationContext",
    "Composer",
    "Declaration",
    "DeriveEngine",
    "ErrorCategory",
    "GenerationError",
    "GenerationResult",
    "IllegalTupleArityError",
    "KnownProvider",
    "NoGeneratorError",
    "NoResolverError",
    "TypederiveError",
    "UnbrokenRecursionError",
    "UnsupportedTypeError",
    "amend",
    "find_generator",
    "generate",
    "generic",
    "normalize",
    "resolve",
    "simplify",
]
