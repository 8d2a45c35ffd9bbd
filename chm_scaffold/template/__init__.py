"""Frontend template acquisition: fetch, extract, relocate.

Quick usage::

    from chm_scaffold.template import ArchiveFetcher, ArchiveRequest, SafeExtractor, TreeRelocator

    request = ArchiveRequest(owner="End-YYDS", repo="React_Project_init", branch="main")
    archive = await ArchiveFetcher().download(request, project / "template.zip")
    SafeExtractor().extract(archive, project)
    TreeRelocator().relocate(project, request.top_level_name, project / "frontend", archive)
"""

from chm_scaffold.template.extractor import ExtractionResult, SafeExtractor, safe_member_path
from chm_scaffold.template.fetcher import ArchiveFetcher, ArchiveRequest
from chm_scaffold.template.relocator import TreeRelocator

__all__ = [
    "ArchiveFetcher",
    "ArchiveRequest",
    "ExtractionResult",
    "SafeExtractor",
    "TreeRelocator",
    "safe_member_path",
]
