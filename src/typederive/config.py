"""Configuration for typederive runs.

A TypederiveConfig says which optional capabilities (packages) are
available, which built-in generators to load and how to log. It is usually
read from a TOML file by ``typederive.toml_config``, but can also be built
in code with the fluent ``with_*`` methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .logging import LogFormat, configure_logging
from .registry import GeneratorEntry
from .resolvers import ActivationContext


@dataclass
class TypederiveConfig:
    """Main configuration for typederive.

    Attributes:
        project_root: Directory the configuration was loaded from
        capabilities: Optional capabilities enabled for the run
        generators: Built-in generator ids to load (None = all)
        log_level: Level name for the ``typederive`` logger
        log_format: ``text`` or ``json``
    """

    project_root: Path = field(default_factory=Path.cwd)
    capabilities: list[str] = field(default_factory=list)
    generators: list[str] | None = None
    log_level: str = "WARNING"
    log_format: str = LogFormat.TEXT.value

    def with_capabilities(self, *capabilities: str) -> TypederiveConfig:
        """Enable additional capabilities."""
        for capability in capabilities:
            if capability not in self.capabilities:
                self.capabilities.append(capability)
        return self

    def with_generators(self, *ids: str) -> TypederiveConfig:
        """Restrict the built-in generators to ``ids``."""
        self.generators = list(ids)
        return self

    def with_logging(self, level: str, log_format: str | None = None) -> TypederiveConfig:
        self.log_level = level
        if log_format is not None:
            self.log_format = log_format
        return self

    def build_context(self) -> ActivationContext:
        return ActivationContext(frozenset(self.capabilities))

    def definitions(self) -> list[GeneratorEntry]:
        """Definitions of the enabled built-in generators."""
        from .generators import builtin_definitions

        return builtin_definitions(self.generators)

    def configure(self) -> None:
        """Apply the logging settings.

        Raises:
            ValueError: If the level or format is unknown
        """
        configure_logging(self.log_level, LogFormat(self.log_format))
