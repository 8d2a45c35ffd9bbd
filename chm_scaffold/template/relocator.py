"""Move extracted template content to its canonical project location."""

from __future__ import annotations

import shutil
from pathlib import Path

from ..errors import ScaffoldIOError
from ..utils import is_empty_dir


class TreeRelocator:
    """Relocates the archive's top-level directory and removes the archive.

    An archive downloaded from a branch unpacks into a single directory named
    ``"{repo}-{branch}"`` (or a configured override).  The relocator moves that
    directory to the path the rest of the scaffold expects, e.g.
    ``<project>/frontend``, then deletes the temporary archive file.
    """

    def relocate(
        self,
        extract_root: str | Path,
        top_level_name: str,
        target: str | Path,
        archive_path: str | Path | None = None,
    ) -> Path:
        """Move ``extract_root/top_level_name`` to *target*.

        Args:
            extract_root: Directory the archive was extracted into.
            top_level_name: Name of the archive's top-level directory.
            target: Canonical destination path.  Must not exist, or be an
                empty directory.
            archive_path: Temporary archive file to delete after the move.

        Returns:
            The destination path.

        Raises:
            ScaffoldIOError: If the source directory is missing, the target is
                already populated, or the move/delete fails.
        """
        source = Path(extract_root) / top_level_name
        destination = Path(target)

        if not source.is_dir():
            raise ScaffoldIOError(
                "expected top-level directory is missing (unexpected archive layout)",
                operation="relocate",
                target=str(source),
            )
        if destination.exists() and not is_empty_dir(destination):
            raise ScaffoldIOError(
                "destination already exists and is not empty",
                operation="relocate",
                target=str(destination),
            )

        try:
            if destination.exists():
                destination.rmdir()
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(destination))
        except OSError as exc:
            raise ScaffoldIOError(str(exc), operation="relocate", target=str(destination)) from exc

        if archive_path is not None:
            try:
                Path(archive_path).unlink(missing_ok=True)
            except OSError as exc:
                raise ScaffoldIOError(
                    str(exc), operation="remove archive", target=str(archive_path)
                ) from exc

        return destination
