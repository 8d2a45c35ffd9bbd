"""Download a branch of a remote repository as a zip archive.

The archive is fetched in a single awaited GET; there is no retry and no
streaming.  A failed fetch raises ``NetworkError`` and the caller must not go
on to extraction.

Typical usage::

    request = ArchiveRequest(owner="End-YYDS", repo="React_Project_init", branch="main")
    data = await ArchiveFetcher().fetch(request)
"""

from __future__ import annotations

from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..config import TemplateSource
from ..errors import NetworkError, ScaffoldIOError


class ArchiveRequest(BaseModel):
    """Immutable description of one archive to download."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    branch: str = Field(..., min_length=1)
    host: str = Field(default="github.com")
    top_level_dir: str | None = Field(default=None)

    @classmethod
    def from_source(cls, source: TemplateSource) -> "ArchiveRequest":
        return cls(
            owner=source.owner,
            repo=source.repo,
            branch=source.branch,
            host=source.host,
            top_level_dir=source.top_level_dir,
        )

    @property
    def url(self) -> str:
        """Canonical download URL for the branch archive."""
        return (
            f"https://{self.host}/{self.owner}/{self.repo}"
            f"/archive/refs/heads/{self.branch}.zip"
        )

    @property
    def top_level_name(self) -> str:
        """Directory name the archive unpacks into."""
        return self.top_level_dir or f"{self.repo}-{self.branch}"


class ArchiveFetcher:
    """Async downloader for repository archives.

    Uses ``httpx.AsyncClient`` for non-blocking HTTP.  Redirects are followed
    because hosted archive URLs usually redirect to a download host.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our timeout."""
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            follow_redirects=True,
        )

    async def fetch(self, request: ArchiveRequest) -> bytes:
        """Download the archive described by *request* and return its bytes.

        Raises:
            NetworkError: On connection failure, timeout, or a non-2xx status.
        """
        url = request.url
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as exc:
            raise NetworkError(
                f"server returned HTTP {exc.response.status_code}",
                url=url,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TimeoutException as exc:
            raise NetworkError(f"request timed out after {self.timeout}s", url=url) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"transport error: {exc}", url=url) from exc

    async def download(self, request: ArchiveRequest, dest: str | Path) -> Path:
        """Fetch the archive and write it to *dest*.

        Returns:
            The path of the written archive file.
        """
        data = await self.fetch(request)
        target = Path(dest)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise ScaffoldIOError(str(exc), operation="write archive", target=str(target)) from exc
        return target
