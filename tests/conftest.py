"""Shared pytest fixtures for the CHM plugin scaffold test suite.

Provides reusable fixtures for:
- In-memory zip archives
- Sample Cargo.toml / package.json manifests
- Mocked httpx clients
- A fake cargo builder that writes what ``cargo new --lib`` would
- Mock subprocess helpers
"""

from __future__ import annotations

import io
import textwrap
import zipfile
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------

def build_zip(entries: dict[str, bytes | str | None]) -> bytes:
    """Build a zip archive in memory.

    ``None`` values become directory entries; the entry name should then end
    with ``/``.  Names are written verbatim so unsafe names can be tested.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            info = zipfile.ZipInfo(name)
            if content is None:
                info.external_attr = 0o40755 << 16
                zf.writestr(info, b"")
            else:
                data = content.encode("utf-8") if isinstance(content, str) else content
                info.compress_type = zipfile.ZIP_DEFLATED
                zf.writestr(info, data)
    return buffer.getvalue()


@pytest.fixture
def make_zip():
    """Factory fixture wrapping :func:`build_zip`."""
    return build_zip


@pytest.fixture
def template_zip() -> bytes:
    """A frontend template archive laid out like a GitHub branch download."""
    return build_zip({
        "Tmpl-main/": None,
        "Tmpl-main/package.json": (
            '{\n  "name": "old",\n  "version": "0.0.1",\n  "private": true,\n'
            '  "scripts": {\n    "dev": "vite"\n  }\n}\n'
        ),
        "Tmpl-main/src/": None,
        "Tmpl-main/src/main.tsx": "console.log('hi');\n",
        "Tmpl-main/index.html": "<!doctype html>\n",
    })


# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------

CARGO_NEW_TOML = textwrap.dedent("""\
    [package]
    name = "widget"
    version = "0.1.0"
    edition = "2021"

    [dependencies]
""")


@pytest.fixture
def cargo_new_toml() -> str:
    """The Cargo.toml that ``cargo new --lib widget`` produces."""
    return CARGO_NEW_TOML


@pytest.fixture
def commented_cargo_toml() -> str:
    """A Cargo.toml with comments, odd spacing and an existing [lib] section."""
    return textwrap.dedent("""\
        # Plugin crate
        [package]
        name    = "widget"   # aligned on purpose
        version = "0.1.0"
        edition = "2021"

        [dependencies]
        serde = { version = "1", features = ["derive"] }  # keep me
        # trailing comment in dependencies

        [lib]
        path = "src/lib.rs"
        crate-type = ["rlib"]

        [profile.release]
        lto = true
    """)


@pytest.fixture
def package_json_text() -> str:
    return textwrap.dedent("""\
        {
            "name": "react-project-init",
            "private": true,
            "version": "0.0.0",
            "type": "module",
            "scripts": {
                "dev": "vite",
                "lint": "eslint ."
            },
            "dependencies": {
                "react": "^19.0.0"
            }
        }
    """)


# ---------------------------------------------------------------------------
# Mock HTTP
# ---------------------------------------------------------------------------

def _mock_async_client(get: AsyncMock) -> AsyncMock:
    client = AsyncMock()
    client.get = get
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


@pytest.fixture
def mock_http():
    """Factory returning a ``patch`` of ``httpx.AsyncClient``.

    Usage:
        def test_fetch(mock_http):
            with mock_http(content=b"zip bytes") as client_cls:
                ...
    """
    def factory(
        content: bytes = b"",
        status_code: int = 200,
        side_effect: BaseException | None = None,
    ) -> Any:
        if side_effect is not None:
            get = AsyncMock(side_effect=side_effect)
        else:
            response = MagicMock()
            response.status_code = status_code
            response.content = content
            if status_code >= 400:
                request = httpx.Request("GET", "https://example.invalid/archive.zip")
                error = httpx.HTTPStatusError(
                    f"HTTP {status_code}",
                    request=request,
                    response=httpx.Response(status_code, request=request),
                )
                response.raise_for_status = MagicMock(side_effect=error)
            else:
                response.raise_for_status = MagicMock()
            get = AsyncMock(return_value=response)
        return patch("httpx.AsyncClient", return_value=_mock_async_client(get))

    return factory


# ---------------------------------------------------------------------------
# Fake builders
# ---------------------------------------------------------------------------

class FakeCargoBuilder:
    """Stands in for ``CargoBuilder``: writes the files ``cargo new --lib`` creates."""

    created: list[Path] = []

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = Path(project_dir)

    async def new_lib(self) -> Path:
        (self.project_dir / "src").mkdir(parents=True, exist_ok=True)
        (self.project_dir / "Cargo.toml").write_text(
            CARGO_NEW_TOML.replace("widget", self.project_dir.name), encoding="utf-8"
        )
        (self.project_dir / "src" / "lib.rs").write_text("// cargo new\n", encoding="utf-8")
        FakeCargoBuilder.created.append(self.project_dir)
        return self.project_dir


@pytest.fixture
def fake_cargo():
    FakeCargoBuilder.created = []
    return FakeCargoBuilder


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
