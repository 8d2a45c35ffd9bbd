"""Unit tests for ScaffoldConfig and TemplateSource (chm_scaffold.config).

Tests cover:
- TemplateSource defaults and top-level directory naming
- ScaffoldConfig defaults, derived paths, save/load, from_env
- Validation of http_timeout
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from chm_scaffold.config import ScaffoldConfig, TemplateSource


# ---------------------------------------------------------------------------
# TemplateSource
# ---------------------------------------------------------------------------


class TestTemplateSource:
    @pytest.mark.unit
    def test_defaults(self):
        source = TemplateSource()
        assert source.host == "github.com"
        assert source.owner == "End-YYDS"
        assert source.repo == "React_Project_init"
        assert source.branch == "main"
        assert source.top_level_dir is None

    @pytest.mark.unit
    def test_top_level_name_from_repo_and_branch(self):
        assert TemplateSource(repo="Tmpl", branch="dev").top_level_name == "Tmpl-dev"

    @pytest.mark.unit
    def test_top_level_name_override(self):
        source = TemplateSource(repo="Tmpl", branch="main", top_level_dir="custom")
        assert source.top_level_name == "custom"


# ---------------------------------------------------------------------------
# ScaffoldConfig
# ---------------------------------------------------------------------------


class TestScaffoldConfigDefaults:
    @pytest.mark.unit
    def test_defaults(self):
        config = ScaffoldConfig()
        assert config.output_dir == Path(".")
        assert config.frontend_dir == "frontend"
        assert config.workflow_path == ".github/workflows/build.yml"
        assert config.plugin_lib_git == ""
        assert config.actix_web_version == "4.9.0"
        assert config.crate_type == "dylib"
        assert config.front_packer == "yarn"
        assert config.http_timeout == 30.0

    @pytest.mark.unit
    def test_http_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ScaffoldConfig(http_timeout=0)


class TestScaffoldConfigPaths:
    @pytest.mark.unit
    def test_derived_paths(self, tmp_path: Path):
        config = ScaffoldConfig(
            output_dir=tmp_path,
            template=TemplateSource(repo="Tmpl", branch="main"),
        )
        assert config.project_path("widget") == tmp_path / "widget"
        assert config.cargo_toml_path("widget") == tmp_path / "widget" / "Cargo.toml"
        assert config.frontend_path("widget") == tmp_path / "widget" / "frontend"
        assert config.archive_path("widget") == tmp_path / "widget" / "Tmpl-main.zip"

    @pytest.mark.unit
    def test_custom_frontend_dir(self, tmp_path: Path):
        config = ScaffoldConfig(output_dir=tmp_path, frontend_dir="web")
        assert config.frontend_path("widget") == tmp_path / "widget" / "web"


class TestScaffoldConfigSerialisation:
    @pytest.mark.unit
    def test_save_and_load(self, tmp_path: Path):
        config = ScaffoldConfig(
            output_dir=tmp_path,
            plugin_lib_git="https://example.com/plugin_lib.git",
            template=TemplateSource(owner="Acme", repo="Tmpl"),
        )
        saved = config.save(tmp_path / "conf" / "scaffold.json")
        data = json.loads(saved.read_text(encoding="utf-8"))
        assert data["template"]["owner"] == "Acme"

        loaded = ScaffoldConfig.load(saved)
        assert loaded == config


class TestScaffoldConfigFromEnv:
    @pytest.mark.unit
    def test_from_env_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = ScaffoldConfig.from_env()
        assert config == ScaffoldConfig()

    @pytest.mark.unit
    def test_from_env_reads_variables(self, tmp_path: Path):
        env = {
            "CHM_OUTPUT_DIR": str(tmp_path),
            "CHM_FRONTEND_DIR": "web",
            "GIT_REPO": "https://example.com/plugin_lib.git",
            "FRONT_PACKER": "pnpm",
            "CHM_HTTP_TIMEOUT": "5",
            "CHM_TEMPLATE_HOST": "git.example.com",
            "CHM_TEMPLATE_OWNER": "Acme",
            "CHM_TEMPLATE_REPO": "Tmpl",
            "CHM_TEMPLATE_BRANCH": "dev",
            "CHM_TEMPLATE_TOP_DIR": "Tmpl-export",
        }
        with patch.dict(os.environ, env, clear=True):
            config = ScaffoldConfig.from_env()

        assert config.output_dir == tmp_path
        assert config.frontend_dir == "web"
        assert config.plugin_lib_git == "https://example.com/plugin_lib.git"
        assert config.front_packer == "pnpm"
        assert config.http_timeout == 5.0
        assert config.template.host == "git.example.com"
        assert config.template.owner == "Acme"
        assert config.template.repo == "Tmpl"
        assert config.template.branch == "dev"
        assert config.template.top_level_name == "Tmpl-export"

    @pytest.mark.unit
    def test_from_env_ignores_empty_template_values(self):
        with patch.dict(os.environ, {"CHM_TEMPLATE_BRANCH": ""}, clear=True):
            config = ScaffoldConfig.from_env()
        assert config.template.branch == "main"
