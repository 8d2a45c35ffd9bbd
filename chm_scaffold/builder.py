"""Build tool capabilities used by the scaffold and the developer CLI.

The scaffold core never shells out directly; it receives a builder.  Both
builders run their tool through :func:`chm_scaffold.utils.run_command` with
inherited stdio so the tool's own progress output reaches the terminal.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import CommandError
from .utils import console, run_command


@runtime_checkable
class Builder(Protocol):
    """Capability interface of a package/build manager."""

    async def install(self) -> None: ...

    async def build(self) -> None: ...

    async def dev(self, args: Sequence[str] = ()) -> None: ...

    async def run(self, args: Sequence[str] = ()) -> None: ...


async def _invoke(tool: str, args: Sequence[str], cwd: Path) -> None:
    """Run ``tool args...`` in *cwd*; raise ``CommandError`` on failure."""
    argv = [tool, *args]
    if sys.platform == "win32":
        # yarn/npm are .cmd shims on Windows and need the shell
        cmd: str | list[str] = " ".join(argv)
    else:
        cmd = argv
    returncode, _, stderr = await run_command(cmd, cwd=cwd, capture=False)
    if returncode != 0:
        console.print(f"[red]Command {tool} failed with status {returncode}[/red]")
        raise CommandError(" ".join(argv), returncode, stderr)


class CargoBuilder:
    """Drives ``cargo`` for a plugin crate."""

    def __init__(self, project_dir: str | Path, cargo: str = "cargo") -> None:
        self.project_dir = Path(project_dir)
        self.cargo = cargo

    async def new_lib(self) -> Path:
        """Create the crate with ``cargo new --lib`` next to :attr:`project_dir`."""
        parent = self.project_dir.parent
        parent.mkdir(parents=True, exist_ok=True)
        await _invoke(self.cargo, ["new", "--lib", self.project_dir.name], parent)
        return self.project_dir

    async def install(self) -> None:
        await _invoke(self.cargo, ["fetch"], self.project_dir)

    async def build(self, release: bool = True) -> None:
        args = ["build", "--release"] if release else ["build"]
        await _invoke(self.cargo, args, self.project_dir)

    async def dev(self, args: Sequence[str] = ()) -> None:
        await self.run(args)

    async def run(self, args: Sequence[str] = ()) -> None:
        await _invoke(self.cargo, ["run", *args], self.project_dir)

    async def raw(self, args: Sequence[str]) -> None:
        """Pass *args* straight through to cargo."""
        await _invoke(self.cargo, list(args), self.project_dir)


class FrontendBuilder:
    """Drives the frontend package manager (``yarn`` by default)."""

    def __init__(self, frontend_dir: str | Path, packer: str = "yarn") -> None:
        self.frontend_dir = Path(frontend_dir)
        self.packer = packer

    async def install(self) -> None:
        await _invoke(self.packer, ["install"], self.frontend_dir)

    async def build(self) -> None:
        await _invoke(self.packer, ["build"], self.frontend_dir)

    async def dev(self, args: Sequence[str] = ()) -> None:
        await _invoke(self.packer, ["dev", *args], self.frontend_dir)

    async def run(self, args: Sequence[str] = ()) -> None:
        await _invoke(self.packer, list(args), self.frontend_dir)
