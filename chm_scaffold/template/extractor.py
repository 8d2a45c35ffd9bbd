"""Safe extraction of zip archives into a destination tree.

Each entry name is normalised and checked against the destination root before
anything is written.  Entries that would land outside the root (``..``
segments, absolute paths, drive letters, or symlinked parents that point
elsewhere) are skipped and reported, as are file entries whose name resolves
to a directory; they never abort the extraction.
Corrupt or truncated archives raise ``ArchiveError``.

Extraction is not transactional: a failure midway leaves whatever was already
written in place.
"""

from __future__ import annotations

import io
import posixpath
import shutil
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath

from ..errors import ArchiveError, PathSafetyViolation, ScaffoldIOError
from ..utils import print_warning


@dataclass
class ExtractionResult:
    """Outcome of one extraction: relative paths written and entries skipped."""

    root: Path
    extracted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def safe_member_path(root: Path, name: str) -> Path:
    """Map archive entry *name* to a path inside *root*.

    Raises:
        PathSafetyViolation: If the entry cannot be normalised to a path that
            stays within *root*.
    """
    raw = name.replace("\\", "/")
    if not raw.strip("/"):
        raise PathSafetyViolation(name, "empty entry name")
    if raw.startswith("/") or PureWindowsPath(raw).drive:
        raise PathSafetyViolation(name, "absolute path")

    normalized = posixpath.normpath(raw)
    if normalized == ".." or normalized.startswith("../"):
        raise PathSafetyViolation(name, "path escapes the destination root")

    root_resolved = root.resolve()
    candidate = root_resolved / normalized if normalized != "." else root_resolved
    # resolve() follows symlinks already present under the root
    if not candidate.resolve().is_relative_to(root_resolved):
        raise PathSafetyViolation(name, "path resolves outside the destination root")
    return candidate


class SafeExtractor:
    """Extracts zip archives while enforcing that every entry stays in-root."""

    def extract(self, archive: bytes | str | Path, dest: str | Path) -> ExtractionResult:
        """Extract *archive* (raw bytes or a file path) into *dest*.

        *dest* is created if absent.  Directory entries (names ending in
        ``/``) are created with all ancestors; file entries get their
        ancestors created and are then written byte-for-byte, overwriting any
        existing file.

        Returns:
            An ``ExtractionResult`` listing extracted and skipped entries.

        Raises:
            ArchiveError: If the archive is corrupt or truncated.
            ScaffoldIOError: If a directory or file cannot be written.
        """
        root = Path(dest)
        label = str(archive) if isinstance(archive, (str, Path)) else "<bytes>"
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ScaffoldIOError(str(exc), operation="create directory", target=str(root)) from exc

        result = ExtractionResult(root=root)
        source = io.BytesIO(archive) if isinstance(archive, bytes) else Path(archive)

        try:
            with zipfile.ZipFile(source, "r") as zf:
                for member in zf.infolist():
                    self._extract_member(zf, member, root, result)
        except (zipfile.BadZipFile, zlib.error, EOFError) as exc:
            raise ArchiveError(str(exc), operation="extract", target=label) from exc

        return result

    def _extract_member(
        self,
        zf: zipfile.ZipFile,
        member: zipfile.ZipInfo,
        root: Path,
        result: ExtractionResult,
    ) -> None:
        try:
            target = safe_member_path(root, member.filename)
        except PathSafetyViolation as exc:
            print_warning(f"Skipping unsafe archive entry {exc.entry!r}: {exc.reason}")
            result.skipped.append(member.filename)
            return

        is_dir_entry = member.filename.replace("\\", "/").endswith("/")
        if not is_dir_entry and (target == root.resolve() or target.is_dir()):
            print_warning(
                f"Skipping archive entry {member.filename!r}: file name resolves to a directory"
            )
            result.skipped.append(member.filename)
            return

        rel = target.relative_to(root.resolve()).as_posix()
        try:
            if is_dir_entry:
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(member, "r") as src, target.open("wb") as dst:
                    shutil.copyfileobj(src, dst)
        except OSError as exc:
            raise ScaffoldIOError(str(exc), operation="extract", target=str(target)) from exc
        result.extracted.append(rel)
