"""Built-in generator library.

Each generator lives in its own module exposing ``ID`` and
``definitions()``. A generator's amendments directly follow it in the
combined list.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..registry import GeneratorEntry
from . import json_decode, json_encode, random, to_string

GENERATORS = {
    module.ID: module
    for module in (json_decode, json_encode, random, to_string)
}


def builtin_definitions(enabled: Iterable[str] | None = None) -> list[GeneratorEntry]:
    """Definitions of the built-in generators, in declaration order.

    Args:
        enabled: Generator ids to include (None = all)

    Raises:
        ValueError: If ``enabled`` names an unknown generator
    """
    if enabled is None:
        ids = list(GENERATORS)
    else:
        ids = list(enabled)
        unknown = [i for i in ids if i not in GENERATORS]
        if unknown:
            raise ValueError(f"Unknown generators: {', '.join(unknown)}")

    entries: list[GeneratorEntry] = []
    for id in GENERATORS:
        if id in ids:
            entries.extend(GENERATORS[id].definitions())
    return entries


__all__ = ["GENERATORS", "builtin_definitions"]
