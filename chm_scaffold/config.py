"""CHM plugin scaffold configuration.

Centralised, typed configuration for the scaffold pipeline. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.  Components receive
a ``ScaffoldConfig`` explicitly; none of them read the environment themselves.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class TemplateSource(BaseModel):
    """Where the frontend template archive is downloaded from."""

    host: str = Field(default="github.com")
    owner: str = Field(default="End-YYDS")
    repo: str = Field(default="React_Project_init")
    branch: str = Field(default="main")
    top_level_dir: str | None = Field(
        default=None,
        description="Override for archives whose top-level directory is not '{repo}-{branch}'",
    )

    @property
    def top_level_name(self) -> str:
        """Name of the single directory at the root of the downloaded archive."""
        return self.top_level_dir or f"{self.repo}-{self.branch}"


class ScaffoldConfig(BaseModel):
    """Global scaffold configuration.

    Holds every tuneable parameter and derived path used by the pipeline.
    Instances are typically created once by the CLI entry point and then
    passed through the rest of the system.
    """

    output_dir: Path = Field(default=Path("."))
    frontend_dir: str = Field(default="frontend")
    workflow_path: str = Field(default=".github/workflows/build.yml")
    plugin_lib_git: str = Field(default="", description="Git URL of the plugin_lib crate")
    actix_web_version: str = Field(default="4.9.0")
    crate_type: str = Field(default="dylib")
    front_packer: str = Field(default="yarn", description="Frontend package manager command")
    http_timeout: float = Field(default=30.0, gt=0, description="Archive download timeout in seconds")
    template: TemplateSource = Field(default_factory=TemplateSource)

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def project_path(self, name: str) -> Path:
        """Root directory of the scaffolded plugin *name*."""
        return self.output_dir / name

    def cargo_toml_path(self, name: str) -> Path:
        return self.project_path(name) / "Cargo.toml"

    def frontend_path(self, name: str) -> Path:
        """Canonical location of the relocated frontend template."""
        return self.project_path(name) / self.frontend_dir

    def archive_path(self, name: str) -> Path:
        """Temporary location of the downloaded template archive."""
        return self.project_path(name) / f"{self.template.top_level_name}.zip"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ScaffoldConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ScaffoldConfig":
        """Build a ``ScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            CHM_OUTPUT_DIR, CHM_FRONTEND_DIR, GIT_REPO, FRONT_PACKER, CHM_HTTP_TIMEOUT,
            CHM_TEMPLATE_HOST, CHM_TEMPLATE_OWNER, CHM_TEMPLATE_REPO,
            CHM_TEMPLATE_BRANCH, CHM_TEMPLATE_TOP_DIR.
        """
        template_kwargs: dict[str, Any] = {}
        if os.environ.get("CHM_TEMPLATE_HOST"):
            template_kwargs["host"] = os.environ["CHM_TEMPLATE_HOST"]
        if os.environ.get("CHM_TEMPLATE_OWNER"):
            template_kwargs["owner"] = os.environ["CHM_TEMPLATE_OWNER"]
        if os.environ.get("CHM_TEMPLATE_REPO"):
            template_kwargs["repo"] = os.environ["CHM_TEMPLATE_REPO"]
        if os.environ.get("CHM_TEMPLATE_BRANCH"):
            template_kwargs["branch"] = os.environ["CHM_TEMPLATE_BRANCH"]
        if os.environ.get("CHM_TEMPLATE_TOP_DIR"):
            template_kwargs["top_level_dir"] = os.environ["CHM_TEMPLATE_TOP_DIR"]

        kwargs: dict[str, Any] = {}
        if os.environ.get("CHM_HTTP_TIMEOUT"):
            kwargs["http_timeout"] = float(os.environ["CHM_HTTP_TIMEOUT"])

        return cls(
            output_dir=Path(os.environ.get("CHM_OUTPUT_DIR", ".")),
            frontend_dir=os.environ.get("CHM_FRONTEND_DIR", "frontend"),
            plugin_lib_git=os.environ.get("GIT_REPO", ""),
            front_packer=os.environ.get("FRONT_PACKER", "yarn"),
            template=TemplateSource(**template_kwargs),
            **kwargs,
        )
