"""Cargo.toml editing on top of tomlkit's format-preserving document tree."""

from __future__ import annotations

from pathlib import Path

import tomlkit
from tomlkit.container import OutOfOrderTableProxy
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import InlineTable, Item, Table
from tomlkit.toml_document import TOMLDocument

from ..errors import ManifestParseError, SchemaMismatch
from .base import DependencySpec, ManifestDocument


class CargoManifest(ManifestDocument):
    """A ``Cargo.toml`` build manifest.

    Comments, key order and whitespace of everything not edited are kept
    exactly as they were in the source file.
    """

    insert_missing_fields = False

    def __init__(self, document: TOMLDocument, path: Path | None = None) -> None:
        super().__init__(path)
        self.document = document

    @classmethod
    def parse(cls, text: str, path: Path | None = None) -> "CargoManifest":
        try:
            document = tomlkit.parse(text)
        except TOMLKitError as exc:
            raise ManifestParseError(
                str(exc), operation="parse TOML", target=str(path or "<memory>")
            ) from exc
        return cls(document, path)

    def dumps(self) -> str:
        return self.document.as_string()

    # -- Field edits ------------------------------------------------------

    def _package_fields(self) -> Table | InlineTable | None:
        package = self.document.get("package")
        return package if _is_table(package) else None

    def set_dependency(self, name: str, spec: DependencySpec) -> None:
        """Insert or overwrite ``[dependencies].<name>``.

        Raises:
            SchemaMismatch: If the manifest has no ``[dependencies]`` table.
        """
        dependencies = self.document.get("dependencies")
        if not _is_table(dependencies):
            raise SchemaMismatch("dependencies", target=self._label())
        dependencies[name] = _dependency_item(spec)

    def set_library_crate_type(self, kind: str) -> None:
        """Set ``[lib].crate-type`` to ``[kind]``, creating ``[lib]`` if needed.

        Other keys already present under ``[lib]`` are preserved.
        """
        lib = self.document.get("lib")
        if lib is None:
            lib = tomlkit.table()
            self.document["lib"] = lib
            lib = self.document["lib"]
        elif not _is_table(lib):
            raise SchemaMismatch("lib", target=self._label())

        crate_types = tomlkit.array()
        crate_types.append(kind)
        lib["crate-type"] = crate_types

    def dependency(self, name: str) -> object | None:
        """Return the unwrapped value of ``[dependencies].<name>`` if present."""
        dependencies = self.document.get("dependencies")
        if not _is_table(dependencies) or name not in dependencies:
            return None
        return dependencies[name].unwrap()


def _dependency_item(spec: DependencySpec) -> Item:
    if spec.is_plain_version:
        return tomlkit.item(spec.version)
    table = tomlkit.inline_table()
    for key, value in spec.as_fields().items():
        if isinstance(value, list):
            features = tomlkit.array()
            for feature in value:
                features.append(feature)
            table[key] = features
        else:
            table[key] = value
    return table


def _is_table(value: object) -> bool:
    # Tables split across the file come back as an out-of-order proxy;
    # `dependencies = { ... }` is an inline table.
    return isinstance(value, (Table, InlineTable, OutOfOrderTableProxy))
