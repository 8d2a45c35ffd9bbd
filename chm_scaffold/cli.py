"""Command-line entry points.

``chmmod-create`` scaffolds a new plugin::

    chmmod-create --name my_plugin -d "Does things" -v 0.1.0 -s public

``chmmod`` is the developer helper run from inside a plugin crate::

    chmmod build
    chmmod web-dev --host
    chmmod cargo test
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape
from rich.prompt import Prompt

from . import __version__
from .builder import CargoBuilder, FrontendBuilder
from .config import ScaffoldConfig
from .errors import ScaffoldError
from .packaging import build_release
from .scaffolder import PluginScaffolder, PluginSpec
from .utils import console, print_error, print_header, print_success, print_summary_table


# ---------------------------------------------------------------------------
# chmmod-create
# ---------------------------------------------------------------------------


def _ask(value: str | None, question: str, default: str | None = None) -> str:
    """Return *value*, prompting for it when it was not given on the command line."""
    if value is not None:
        return value
    if default is None:
        return Prompt.ask(question, console=console).strip()
    answer = Prompt.ask(question, default=default, console=console).strip()
    return answer or default


def _load_config() -> ScaffoldConfig:
    """Read the configuration from the environment, exiting 1 if it is invalid."""
    try:
        return ScaffoldConfig.from_env()
    except (ValueError, ValidationError) as exc:
        print_error(f"Error: Invalid configuration: {escape(str(exc))}")
        sys.exit(1)


def build_create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chmmod-create",
        description="Generates a new CHM plugin module",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  chmmod-create --name my_module\n"
            "  chmmod-create -n my_module -d 'Demo plugin' -v 1.0.0 -s admin --no-frontend\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--name", "-n", default=None, help="Name of the module")
    parser.add_argument("--description", "-d", default=None, help="Description of the plugin")
    parser.add_argument("--plugin-version", "-v", default=None, help="Plugin version")
    parser.add_argument("--scope", "-s", default=None, help="Plugin scope")
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Directory the plugin is created in (default: CHM_OUTPUT_DIR or .)",
    )
    parser.add_argument(
        "--no-frontend",
        action="store_true",
        help="Do not fetch the frontend template",
    )
    return parser


def create_main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``chmmod-create``."""
    args = build_create_parser().parse_args(argv)

    name = _ask(args.name, "Please enter a module name")
    description = _ask(args.description, "Please enter a plugin description")
    version = _ask(args.plugin_version, "Please enter the plugin version", default="0.1.0")
    scope = _ask(args.scope, "Please enter the plugin scope", default="public")

    try:
        spec = PluginSpec(
            name=name,
            version=version,
            description=description,
            scope=scope,
            include_frontend=not args.no_frontend,
        )
    except ValidationError as exc:
        print_error(f"Error: Invalid plugin options: {escape(str(exc))}")
        sys.exit(1)

    config = _load_config()
    if args.output:
        config.output_dir = Path(args.output)

    print_header(f"Scaffolding {spec.name}")
    print_summary_table(
        {
            "Module": spec.name,
            "Version": spec.version,
            "Scope": spec.scope,
            "Frontend": config.template.top_level_name if spec.include_frontend else "-",
            "Output": str(config.project_path(spec.name)),
        },
        title="Plugin",
    )

    scaffolder = PluginScaffolder(config)
    try:
        asyncio.run(scaffolder.scaffold(spec))
    except ScaffoldError as exc:
        print_error(
            f"Error: Failed to scaffold the module '{spec.name}'. Reason: {escape(str(exc))}"
        )
        sys.exit(1)

    print_success(f"Module '{spec.name}' has been successfully scaffolded!")


# ---------------------------------------------------------------------------
# chmmod
# ---------------------------------------------------------------------------


_PASSTHROUGH_COMMANDS = ("run", "yarn", "cargo", "web-dev")


def build_dev_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chmmod",
        description="Build and run a CHM plugin and its frontend",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("build", help="Build the frontend and the release library, then package them")
    for name, help_text in zip(
        _PASSTHROUGH_COMMANDS,
        (
            "Run the project (cargo run)",
            "Run the frontend package manager with the given arguments",
            "Run cargo with the given arguments",
            "Start the frontend dev server",
        ),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("args", nargs=argparse.REMAINDER, help="Extra arguments")
    sub.add_parser("web-install", help="Install frontend dependencies")
    sub.add_parser("web-build", help="Build the frontend")
    return parser


def _split_passthrough(argv: list[str]) -> tuple[list[str], list[str]]:
    """Split *argv* after a pass-through subcommand.

    The tail goes to the tool verbatim, leading ``--flags`` included.
    """
    for index, token in enumerate(argv):
        if not token.startswith("-"):
            if token in _PASSTHROUGH_COMMANDS:
                return argv[: index + 1], argv[index + 1:]
            break
    return argv, []


async def _dispatch(command: str, extra: list[str], project_dir: Path, config: ScaffoldConfig) -> None:
    program = project_dir.name
    cargo = CargoBuilder(project_dir)
    frontend = FrontendBuilder(project_dir / config.frontend_dir, packer=config.front_packer)

    if command == "build":
        await build_release(project_dir, program, cargo=cargo, frontend=frontend)
    elif command == "run":
        await cargo.run(extra)
    elif command == "cargo":
        await cargo.raw(extra)
    elif command == "yarn":
        await frontend.run(extra)
    elif command == "web-install":
        await frontend.install()
    elif command == "web-dev":
        await frontend.dev(extra)
    elif command == "web-build":
        await frontend.build()
    else:
        raise ScaffoldError(f"unknown command {command!r}")


def dev_main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``chmmod``."""
    head, extra = _split_passthrough(list(sys.argv[1:] if argv is None else argv))
    args = build_dev_parser().parse_args(head)
    project_dir = Path.cwd()
    config = _load_config()
    # The frontend build names its bundle after the library.
    os.environ["LIB_NAME"] = project_dir.name

    try:
        asyncio.run(_dispatch(args.command, extra, project_dir, config))
    except ScaffoldError as exc:
        print_error(f"Error: {escape(str(exc))}")
        sys.exit(1)


if __name__ == "__main__":
    create_main()
