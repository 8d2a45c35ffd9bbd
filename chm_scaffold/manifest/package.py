"""package.json editing that keeps key order and the file's formatting.

Untouched values are written back the way they were read: number literals
keep their source text, and the indentation, line endings, trailing newline
and ``\\uXXXX`` escaping style of the source file are detected and reused.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from ..errors import ManifestParseError, SchemaMismatch
from .base import DependencySpec, ManifestDocument

_INDENT_RE = re.compile(r"\{[ \t]*\r?\n([ \t]+)\S")
_UNICODE_ESCAPE_RE = re.compile(r"(?<!\\)(?:\\\\)*\\u[0-9a-fA-F]{4}")
# json.dumps writes NUL as \u0000, so placeholders are found as escaped text.
_LITERAL_MARK = "\x00chm-number:"
_LITERAL_RE = re.compile(r'"\\u0000chm-number:(\d+)"')


class NumberLiteral:
    """A JSON number kept as the exact text it was written with."""

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text

    @property
    def value(self) -> int | float:
        return json.loads(self.text)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NumberLiteral):
            return self.text == other.text
        if isinstance(other, (int, float)) and not isinstance(other, bool):
            return self.value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"NumberLiteral({self.text!r})"


class PackageManifest(ManifestDocument):
    """A ``package.json`` package manifest.

    JSON objects load into insertion-ordered dicts, so sibling keys keep their
    position across edits.  Numbers load as :class:`NumberLiteral`.
    """

    insert_missing_fields = True

    def __init__(
        self,
        data: dict[str, Any],
        path: Path | None = None,
        *,
        indent: str | None = "  ",
        trailing_newline: bool = True,
        newline: str = "\n",
        ensure_ascii: bool = False,
    ) -> None:
        super().__init__(path)
        self.data = data
        self.indent = indent
        self.trailing_newline = trailing_newline
        self.newline = newline
        self.ensure_ascii = ensure_ascii

    @classmethod
    def parse(cls, text: str, path: Path | None = None) -> "PackageManifest":
        label = str(path or "<memory>")
        try:
            data = json.loads(text, parse_int=NumberLiteral, parse_float=NumberLiteral)
        except json.JSONDecodeError as exc:
            raise ManifestParseError(str(exc), operation="parse JSON", target=label) from exc
        if not isinstance(data, dict):
            raise ManifestParseError(
                "top-level value must be an object", operation="parse JSON", target=label
            )
        return cls(
            data,
            path,
            indent=_detect_indent(text),
            trailing_newline=text.endswith("\n"),
            newline="\r\n" if "\r\n" in text else "\n",
            ensure_ascii=text.isascii() and bool(_UNICODE_ESCAPE_RE.search(text)),
        )

    def dumps(self) -> str:
        literals: list[str] = []

        def keep_literal(value: object) -> str:
            if isinstance(value, NumberLiteral):
                literals.append(value.text)
                return f"{_LITERAL_MARK}{len(literals) - 1}"
            raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

        content = json.dumps(
            self.data, indent=self.indent, ensure_ascii=self.ensure_ascii, default=keep_literal
        )
        content = _LITERAL_RE.sub(lambda m: literals[int(m.group(1))], content)
        if self.newline != "\n":
            content = content.replace("\n", self.newline)
        return content + self.newline if self.trailing_newline else content

    # -- Field edits ------------------------------------------------------

    def _package_fields(self) -> dict[str, Any]:
        return self.data

    def insert_script(self, key: str, command: str) -> None:
        """Set ``scripts.<key>`` to *command*, creating ``scripts`` if needed."""
        self._object("scripts")[key] = command

    def set_dependency(self, name: str, spec: DependencySpec) -> None:
        """Insert or overwrite ``dependencies.<name>``.

        npm dependencies are plain strings: the version range, or the source
        location when no version is given.
        """
        value = spec.version if spec.version is not None else spec.git
        if value is None:
            raise SchemaMismatch("version", target=self._label())
        self._object("dependencies")[name] = value

    def _object(self, key: str) -> dict[str, Any]:
        if key not in self.data:
            self.data[key] = {}
        section = self.data[key]
        if not isinstance(section, dict):
            raise SchemaMismatch(key, target=self._label())
        return section


def _detect_indent(text: str) -> str | None:
    """Return the indentation unit of a pretty-printed JSON object.

    Single-line documents return ``None`` so they stay single-line.
    """
    match = _INDENT_RE.match(text.lstrip())
    if match:
        return match.group(1)
    return None if "\n" not in text.strip() else "  "
