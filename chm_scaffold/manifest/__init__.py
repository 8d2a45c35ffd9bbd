"""Field-scoped editing of build (Cargo.toml) and package (package.json) manifests."""

from chm_scaffold.manifest.base import DependencySpec, ManifestDocument
from chm_scaffold.manifest.cargo import CargoManifest
from chm_scaffold.manifest.package import PackageManifest

__all__ = [
    "CargoManifest",
    "DependencySpec",
    "ManifestDocument",
    "PackageManifest",
]
