"""Integration tests for the scaffold-then-package flow.

These tests run the real scaffolder, extractor, relocator, manifest editors
and release packager end-to-end.  Only the network (``httpx.AsyncClient``)
and the Rust toolchain (a fake cargo builder) are replaced.
"""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import tomlkit
import yaml

from chm_scaffold.config import ScaffoldConfig, TemplateSource
from chm_scaffold.packaging import SIGNATURE_PLACEHOLDER, build_release, library_filename
from chm_scaffold.scaffolder import PluginScaffolder, PluginSpec


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _config(output_dir: Path) -> ScaffoldConfig:
    return ScaffoldConfig(
        output_dir=output_dir,
        plugin_lib_git="https://example.com/plugin_lib.git",
        template=TemplateSource(owner="Acme", repo="Tmpl", branch="main"),
    )


async def _scaffold(output_dir: Path, fake_cargo, mock_http, archive: bytes, **spec_kwargs) -> Path:
    scaffolder = PluginScaffolder(_config(output_dir), builder_factory=fake_cargo)
    with mock_http(content=archive):
        return await scaffolder.scaffold(PluginSpec(**spec_kwargs))


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestPluginScaffold:
    """The generated project is complete and well-formed."""

    async def test_frontend_is_fetched_and_stamped(
        self, tmp_path: Path, fake_cargo, mock_http, make_zip
    ):
        archive = make_zip({
            "Tmpl-main/": None,
            "Tmpl-main/package.json": '{\n  "name": "old",\n  "version": "0.0.1"\n}\n',
        })
        root = await _scaffold(
            tmp_path, fake_cargo, mock_http, archive, name="widget", version="1.2.0"
        )

        package = json.loads((root / "frontend" / "package.json").read_text())
        assert package["name"] == "widget"
        assert package["version"] == "1.2.0"
        assert not (root / "Tmpl-main.zip").exists()
        assert not (root / "Tmpl-main").exists()

    async def test_unsafe_entry_is_skipped(
        self, tmp_path: Path, fake_cargo, mock_http, make_zip
    ):
        output_dir = tmp_path / "deep" / "out"
        archive = make_zip({
            "../../etc/evil": "pwned",
            "Tmpl-main/package.json": '{"name": "old"}',
        })
        root = await _scaffold(output_dir, fake_cargo, mock_http, archive, name="widget")

        assert (root / "frontend" / "package.json").is_file()
        assert not (tmp_path / "deep" / "etc").exists()
        assert not (output_dir / "etc").exists()

    async def test_generated_files_are_well_formed(
        self, tmp_path: Path, fake_cargo, mock_http, template_zip
    ):
        root = await _scaffold(
            tmp_path, fake_cargo, mock_http, template_zip,
            name="my_widget", version="0.3.0", description="Widget", scope="admin",
        )

        cargo = tomlkit.parse((root / "Cargo.toml").read_text()).unwrap()
        assert cargo["package"]["name"] == "my_widget"
        assert cargo["lib"]["crate-type"] == ["dylib"]

        workflow = yaml.safe_load((root / ".github" / "workflows" / "build.yml").read_text())
        assert workflow["env"] == {"PROJECT_NAME": "my_widget"}
        assert len(workflow["jobs"]["build"]["strategy"]["matrix"]["include"]) == 4

        lib_rs = (root / "src" / "lib.rs").read_text()
        assert "struct MyWidgetPlugin;" in lib_rs
        assert '"/admin"' in lib_rs
        assert SIGNATURE_PLACEHOLDER in lib_rs

    async def test_scaffold_then_package(
        self, tmp_path: Path, fake_cargo, mock_http, template_zip
    ):
        root = await _scaffold(tmp_path, fake_cargo, mock_http, template_zip, name="widget")
        (root / "frontend" / "dist").mkdir()

        cargo = AsyncMock()

        async def cargo_build(release: bool = True) -> None:
            out = root / "target" / "release"
            out.mkdir(parents=True)
            (out / library_filename("widget")).write_bytes(b"lib")

        cargo.build.side_effect = cargo_build
        frontend = AsyncMock()
        frontend.frontend_dir = root / "frontend"

        async def frontend_build() -> None:
            (root / "frontend" / "dist" / "widget.js").write_text("bundle")

        frontend.build.side_effect = frontend_build

        archive = await build_release(root, "widget", cargo=cargo, frontend=frontend)

        with zipfile.ZipFile(archive) as zf:
            assert sorted(zf.namelist()) == sorted(
                ["frontend/", "frontend/widget.js", library_filename("widget")]
            )
        assert SIGNATURE_PLACEHOLDER not in (root / "src" / "lib.rs").read_text()
