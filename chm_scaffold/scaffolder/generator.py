"""Main scaffolding orchestrator.

Takes a ``PluginSpec`` and produces a buildable plugin crate: the library
skeleton, the multi-platform build workflow, a patched ``Cargo.toml`` and,
optionally, a frontend fetched from a template repository with its
``package.json`` stamped for the plugin.

Stages run strictly in sequence; the first failure aborts the rest and
propagates to the caller.  Nothing is cleaned up on failure.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from ..builder import CargoBuilder
from ..config import ScaffoldConfig
from ..errors import ScaffoldError
from ..manifest import CargoManifest, DependencySpec, PackageManifest
from ..template import ArchiveFetcher, ArchiveRequest, SafeExtractor, TreeRelocator
from ..utils import print_step, print_success, print_warning
from ..workflow import write_workflow
from .templates import TemplateRenderer, pascal_case

DEFAULT_BUILD_SCRIPT = "vite build"


class PluginSpec(BaseModel):
    """What the user asked to scaffold."""

    name: str = Field(..., min_length=1, pattern=r"^[A-Za-z_][A-Za-z0-9_-]*$")
    version: str = Field(default="0.1.0", min_length=1)
    description: str = Field(default="")
    scope: str = Field(default="public")
    include_frontend: bool = Field(default=True)


class PluginScaffolder:
    """Runs the scaffold pipeline for one plugin.

    Collaborators are injectable so the pipeline can run without cargo or the
    network: ``builder_factory`` receives the project directory and returns a
    ``CargoBuilder``-compatible object.
    """

    def __init__(
        self,
        config: ScaffoldConfig,
        *,
        builder_factory: Callable[[Path], CargoBuilder] = CargoBuilder,
        fetcher: ArchiveFetcher | None = None,
        extractor: SafeExtractor | None = None,
        relocator: TreeRelocator | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.builder_factory = builder_factory
        self.fetcher = fetcher or ArchiveFetcher(timeout=config.http_timeout)
        self.extractor = extractor or SafeExtractor()
        self.relocator = relocator or TreeRelocator()
        self.renderer = renderer or TemplateRenderer()

    # -- Public API --------------------------------------------------------

    async def scaffold(self, spec: PluginSpec) -> Path:
        """Generate the plugin described by *spec*.

        Returns:
            Path to the generated project root.

        Raises:
            ScaffoldError: Any stage failure (subclass identifies the kind).
        """
        if not self.config.plugin_lib_git:
            raise ScaffoldError("GIT_REPO is not set", operation="scaffold", target=spec.name)

        project_root = self.config.project_path(spec.name)

        # 1. Library skeleton
        await self.builder_factory(project_root).new_lib()
        print_success(f"Created new library '{spec.name}'")
        await self._render_sources(project_root, spec)

        # 2. CI workflow
        write_workflow(project_root, spec.name, self.config.workflow_path)

        # 3. Build manifest
        self.patch_cargo_toml(self.config.cargo_toml_path(spec.name), spec)
        print_success(f"Updated Cargo.toml for module '{spec.name}'")

        # 4. Frontend template
        if spec.include_frontend:
            request = ArchiveRequest.from_source(self.config.template)
            frontend = await self.materialize_frontend(
                request,
                project_root,
                self.config.frontend_path(spec.name),
                self.config.archive_path(spec.name),
            )
            self.patch_package_json(frontend / "package.json", spec)
            print_success(f"Updated package.json for module '{spec.name}'")

        return project_root

    async def materialize_frontend(
        self,
        request: ArchiveRequest,
        extract_root: Path,
        target: Path,
        archive_path: Path,
    ) -> Path:
        """Fetch, extract and relocate a template archive.

        Returns:
            The relocated template directory (*target*).
        """
        print_step(f"Downloading template {request.url}...")
        archive = await self.fetcher.download(request, archive_path)

        print_step(f"Extracting {archive.name}...")
        result = self.extractor.extract(archive, extract_root)
        if result.skipped:
            print_warning(f"Skipped {len(result.skipped)} unsafe archive entries")

        print_step(f"Moving {request.top_level_name} to {target}...")
        return self.relocator.relocate(extract_root, request.top_level_name, target, archive)

    # -- Manifest patches --------------------------------------------------

    def patch_cargo_toml(self, path: Path, spec: PluginSpec) -> CargoManifest:
        """Add the plugin dependencies and make the crate a dynamic library."""
        manifest = CargoManifest.load(path)
        manifest.set_dependency(
            "plugin_lib", DependencySpec(name="plugin_lib", git=self.config.plugin_lib_git)
        )
        manifest.set_dependency(
            "actix-web", DependencySpec(name="actix-web", version=self.config.actix_web_version)
        )
        manifest.set_library_crate_type(self.config.crate_type)
        manifest.set_package_fields(version=spec.version)
        manifest.save()
        return manifest

    def patch_package_json(self, path: Path, spec: PluginSpec) -> PackageManifest:
        """Stamp the plugin's name, version and description into the frontend."""
        manifest = PackageManifest.load(path)
        manifest.set_package_fields(
            name=spec.name,
            version=spec.version,
            description=spec.description or None,
        )
        scripts = manifest.data.get("scripts")
        if not isinstance(scripts, dict) or "build" not in scripts:
            manifest.insert_script("build", DEFAULT_BUILD_SCRIPT)
        manifest.save()
        return manifest

    # -- Boilerplate -------------------------------------------------------

    def _build_context(self, spec: PluginSpec) -> dict[str, Any]:
        """Build the Jinja2 template context from the plugin spec."""
        return {
            "name": spec.name,
            "plugin_struct": pascal_case(spec.name) + "Plugin",
            "version": spec.version,
            "description": spec.description,
            "scope": spec.scope.strip("/"),
            "include_frontend": spec.include_frontend,
            "frontend_dir": self.config.frontend_dir,
        }

    async def _render_sources(self, root: Path, spec: PluginSpec) -> None:
        """Render ``src/lib.rs`` and ``.gitignore``."""
        ctx = self._build_context(spec)
        await self.renderer.render_to_file("lib.rs.j2", root / "src" / "lib.rs", ctx)
        await self.renderer.render_to_file("gitignore.j2", root / ".gitignore", ctx)
        print_success(f"Updated lib.rs content for '{spec.name}'")
