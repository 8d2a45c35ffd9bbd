"""Exception hierarchy for the CHM plugin scaffold.

Every error carries the operation that failed and the path or URL it was
working on, so a failed scaffold can be diagnosed from the message alone.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for every failure raised by the scaffold pipeline."""

    def __init__(self, message: str, *, operation: str = "", target: str = "") -> None:
        self.operation = operation
        self.target = str(target)
        if operation and target:
            message = f"{operation} failed for {target}: {message}"
        elif operation:
            message = f"{operation} failed: {message}"
        super().__init__(message)


class NetworkError(ScaffoldError):
    """Raised when an archive download fails (transport error or non-2xx status)."""

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message, operation="fetch", target=url)


class ArchiveError(ScaffoldError):
    """Raised when an archive cannot be decoded (corrupt or truncated)."""


class PathSafetyViolation(ScaffoldError):
    """Raised for an archive entry whose path would escape the extraction root.

    The extractor catches this per entry and skips the entry; it never aborts
    the overall extraction.
    """

    def __init__(self, entry: str, reason: str) -> None:
        self.entry = entry
        self.reason = reason
        super().__init__(reason, operation="extract", target=entry)


class ScaffoldIOError(ScaffoldError):
    """Raised when a filesystem create, rename or write fails."""


class ManifestParseError(ScaffoldError):
    """Raised when a manifest file is not valid for its declared format."""


class SchemaMismatch(ScaffoldError):
    """Raised when an expected manifest field or table is absent."""

    def __init__(self, field: str, *, target: str = "") -> None:
        self.field = field
        super().__init__(
            f"expected field '{field}' is missing", operation="patch manifest", target=target
        )


class CommandError(ScaffoldError):
    """Raised when a build tool subprocess exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f"exit {returncode}"
        if stderr:
            detail = f"{detail}\n{stderr}"
        super().__init__(detail, operation="run command", target=command)
