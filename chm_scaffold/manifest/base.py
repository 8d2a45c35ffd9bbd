"""Shared behaviour for field-scoped manifest documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, Field

from ..errors import ScaffoldIOError
from ..utils import atomic_write_text, print_warning

_DocT = TypeVar("_DocT", bound="ManifestDocument")


class DependencySpec(BaseModel):
    """A dependency entry to insert into a manifest.

    ``version`` alone renders as a plain version string; anything else renders
    as a table holding the source location and optional feature list.
    """

    name: str = Field(..., min_length=1)
    git: str | None = Field(default=None, description="Remote source location")
    version: str | None = Field(default=None)
    features: list[str] = Field(default_factory=list)

    @property
    def is_plain_version(self) -> bool:
        return self.version is not None and self.git is None and not self.features

    def as_fields(self) -> dict[str, Any]:
        """Return the non-empty fields in manifest order."""
        fields: dict[str, Any] = {}
        if self.git is not None:
            fields["git"] = self.git
        if self.version is not None:
            fields["version"] = self.version
        if self.features:
            fields["features"] = list(self.features)
        return fields


class ManifestDocument(ABC):
    """A manifest loaded into an order-preserving tree.

    Subclasses parse text into their format's tree, expose field-scoped edits
    and serialise the tree back.  Untouched parts of the document survive a
    load/save cycle unchanged.
    """

    #: Whether ``set_package_fields`` inserts absent keys (``True``) or logs
    #: a notice and skips them (``False``).
    insert_missing_fields: bool = False

    def __init__(self, path: Path | None = None) -> None:
        self.path = path

    # -- Parsing / serialisation ------------------------------------------

    @classmethod
    @abstractmethod
    def parse(cls: type[_DocT], text: str, path: Path | None = None) -> _DocT:
        """Parse *text*; raises ``ManifestParseError`` when it is malformed."""

    @abstractmethod
    def dumps(self) -> str:
        """Serialise the full document back to text."""

    @classmethod
    def load(cls: type[_DocT], path: str | Path) -> _DocT:
        """Read and parse the manifest at *path*."""
        file_path = Path(path)
        try:
            # newline="" keeps CRLF files byte-exact
            with file_path.open(encoding="utf-8", newline="") as handle:
                text = handle.read()
        except OSError as exc:
            raise ScaffoldIOError(str(exc), operation="read manifest", target=str(file_path)) from exc
        return cls.parse(text, path=file_path)

    def save(self, path: str | Path | None = None) -> Path:
        """Atomically overwrite *path* (default: the loaded path) with :meth:`dumps`."""
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ScaffoldIOError("no destination path given", operation="save manifest")
        try:
            atomic_write_text(target, self.dumps())
        except OSError as exc:
            raise ScaffoldIOError(str(exc), operation="save manifest", target=str(target)) from exc
        self.path = target
        return target

    # -- Field edits ------------------------------------------------------

    @abstractmethod
    def _package_fields(self) -> Any:
        """Return the mapping that holds name/version/description, or ``None``."""

    def set_package_fields(
        self,
        *,
        name: str | None = None,
        version: str | None = None,
        description: str | None = None,
    ) -> list[str]:
        """Overwrite the provided top-level scalars.

        Absent keys are inserted when :attr:`insert_missing_fields` is set;
        otherwise a notice is printed and the key is skipped.  Never raises
        for missing keys.

        Returns:
            The names of the fields that were written.
        """
        updates = {"name": name, "version": version, "description": description}
        table = self._package_fields()
        written: list[str] = []
        for key, value in updates.items():
            if value is None:
                continue
            if table is None or (key not in table and not self.insert_missing_fields):
                print_warning(f"Manifest {self._label()} has no '{key}' field; skipping")
                continue
            table[key] = value
            written.append(key)
        return written

    def _label(self) -> str:
        return str(self.path) if self.path else "<memory>"
