"""Command-line interface for typederive."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from argparse import Namespace

    from .config import TypederiveConfig


def get_version() -> str:
    from typederive import __version__

    return __version__


def load_config(args: Namespace) -> TypederiveConfig:
    """Config from ``--config``, else the nearest config file, else defaults."""
    from .config import TypederiveConfig
    from .toml_config import find_config_file, load_toml_config

    path = Path(args.config) if getattr(args, "config", None) else find_config_file(Path.cwd())
    config = load_toml_config(path) if path else TypederiveConfig()
    if getattr(args, "capability", None):
        config.with_capabilities(*args.capability)
    if getattr(args, "debug", False):
        config.log_level = "DEBUG"
    config.configure()
    return config


def cmd_init(args: Namespace) -> int:
    """Write a starter typederive.toml."""
    from .config import TypederiveConfig
    from .toml_config import config_to_toml

    console = Console()
    project_dir = Path(args.directory).resolve()
    if not project_dir.exists():
        console.print(f"[red]Directory {project_dir} does not exist[/red]")
        return 1

    config_file = project_dir / "typederive.toml"
    if config_file.exists() and not args.force:
        console.print(f"[red]{config_file} already exists. Use --force to overwrite.[/red]")
        return 1

    config = TypederiveConfig(capabilities=list(args.capability or []))
    config_file.write_text(config_to_toml(config))
    console.print(f"[green]Created {config_file}[/green]")
    return 0


def cmd_generators(args: Namespace) -> int:
    """List the generators available under the configured capabilities."""
    from .engine import DeriveEngine
    from .types import GenericVar, render_type

    try:
        config = load_config(args)
        engine = DeriveEngine.from_config(config)
    except (FileNotFoundError, ValueError) as e:
        Console(stderr=True).print(f"[red]Error:[/red] {e}")
        return 1

    if args.json:
        data = [
            {
                "id": g.id,
                "resolvers": [r.label for r in g.resolvers],
                "lambda_breaker": g.lambda_breaker is not None,
            }
            for g in engine.registry
        ]
        print(json.dumps(data, indent=2))
        return 0

    table = Table(title="Generators")
    table.add_column("Id", style="cyan")
    table.add_column("Pattern")
    table.add_column("Resolvers")
    table.add_column("Lazy", justify="center")
    for generator in engine.registry:
        table.add_row(
            generator.id,
            render_type(generator.pattern.rebuild(GenericVar("a"))),
            ", ".join(r.label for r in generator.resolvers),
            "yes" if generator.lambda_breaker else "no",
        )
    Console().print(table)
    return 0


def cmd_derive(args: Namespace) -> int:
    """Derive a declaration for a described type."""
    from .engine import DeriveEngine
    from .schema import TypeSchema

    err = Console(stderr=True)
    try:
        config = load_config(args)
        schema = TypeSchema.load(Path(args.types))
        target = schema.named(args.type)
        engine = DeriveEngine.from_config(config)
    except (FileNotFoundError, ValueError) as e:
        err.print(f"[red]Error:[/red] {e}")
        return 1

    generator = engine.generator(args.generator)
    if generator is None:
        err.print(f"[red]Error:[/red] Generator '{args.generator}' is not available")
        return 1

    name = args.name or generator.make_name(target.ref.name)
    result = engine.derive(name, generator.pattern.rebuild(target))

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0 if result.success else 1

    if not result.success:
        message = result.diagnostic.to_compact() if result.diagnostic else result.error
        err.print(message, style="red", markup=False, highlight=False)
        return 1

    Console().print(Syntax(result.render(), "elm", theme="ansi_dark"))
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="typederive",
        description="Derive decoders, encoders and other type-directed code",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    parser.add_argument("--debug", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_config_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--config", metavar="PATH", help="Config file (default: auto-discover)")
        sub.add_argument(
            "--capability",
            "-C",
            action="append",
            metavar="NAME",
            help="Enable a capability (repeatable)",
        )

    init_parser = subparsers.add_parser("init", help="Write a starter typederive.toml")
    init_parser.add_argument(
        "directory", nargs="?", default=".", help="Project directory (default: current)"
    )
    init_parser.add_argument("--force", "-f", action="store_true", help="Overwrite existing config")
    init_parser.add_argument(
        "--capability", "-C", action="append", metavar="NAME", help="Capability to enable"
    )
    init_parser.set_defaults(func=cmd_init)

    generators_parser = subparsers.add_parser("generators", help="List available generators")
    add_config_options(generators_parser)
    generators_parser.add_argument("--json", "-j", action="store_true", help="Output JSON")
    generators_parser.set_defaults(func=cmd_generators)

    derive_parser = subparsers.add_parser("derive", help="Derive a declaration for a type")
    derive_parser.add_argument("types", help="JSON type description file")
    derive_parser.add_argument("--type", "-t", required=True, help="Qualified type name")
    derive_parser.add_argument("--generator", "-g", required=True, help="Generator id")
    derive_parser.add_argument("--name", "-n", help="Declaration name (default: generated)")
    add_config_options(derive_parser)
    derive_parser.add_argument("--json", "-j", action="store_true", help="Output JSON")
    derive_parser.set_defaults(func=cmd_derive)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
