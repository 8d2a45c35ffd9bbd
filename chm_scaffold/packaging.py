"""Release packaging for a scaffolded plugin.

``build_release`` produces ``output/<program>.zip`` containing the compiled
library and, when the plugin has a built frontend, the frontend bundle.  The
frontend bundle's SHA-256 is stamped into ``src/lib.rs`` in place of the
``FRONTEND_SIGNATURE`` placeholder before the crate is compiled.
"""

from __future__ import annotations

import hashlib
import shutil
import sys
import zipfile
from pathlib import Path

from .builder import CargoBuilder, FrontendBuilder
from .errors import ScaffoldError, ScaffoldIOError
from .utils import atomic_write_text, print_step, print_success, print_warning

SIGNATURE_PLACEHOLDER = "FRONTEND_SIGNATURE"

_LIBRARY_PATTERNS: dict[str, str] = {
    "linux": "lib{name}.so",
    "darwin": "lib{name}.dylib",
    "win32": "{name}.dll",
}


def file_sha256(path: str | Path, chunk_size: int = 4096) -> str:
    """Return the hex SHA-256 digest of the file at *path*."""
    digest = hashlib.sha256()
    with Path(path).open("rb") as handle:
        while chunk := handle.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()


def stamp_signature(lib_rs: str | Path, signature: str) -> bool:
    """Replace the first ``FRONTEND_SIGNATURE`` token in *lib_rs*.

    Returns:
        ``True`` if a placeholder was found and replaced.
    """
    path = Path(lib_rs)
    content = path.read_text(encoding="utf-8")
    if SIGNATURE_PLACEHOLDER not in content:
        return False
    atomic_write_text(path, content.replace(SIGNATURE_PLACEHOLDER, signature, 1))
    return True


def library_filename(program: str, platform: str | None = None) -> str:
    """Return the shared-library file name cargo produces for *program*."""
    platform = platform or sys.platform
    for prefix, pattern in _LIBRARY_PATTERNS.items():
        if platform.startswith(prefix):
            return pattern.format(name=program)
    raise ScaffoldError(f"unsupported platform {platform!r}", operation="package release")


def copy_tree(src: Path, dest: Path) -> None:
    """Recursively copy *src* into *dest*, merging with existing content."""
    shutil.copytree(src, dest, dirs_exist_ok=True)


def create_zip_archive(src_dir: str | Path, zip_path: str | Path) -> Path:
    """Zip the contents of *src_dir* into *zip_path*.

    Entry names are relative to *src_dir*; directories are stored as
    ``name/`` entries so empty directories survive.
    """
    root = Path(src_dir)
    target = Path(zip_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(root.rglob("*")):
            name = path.relative_to(root).as_posix()
            if path.is_dir():
                zf.writestr(f"{name}/", b"")
            elif path.is_file():
                zf.write(path, name)
    return target


def _reset_dir(path: Path) -> Path:
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)
    return path


async def build_release(
    project_dir: str | Path,
    program: str,
    *,
    cargo: CargoBuilder,
    frontend: FrontendBuilder | None = None,
) -> Path:
    """Build the plugin and package it into ``output/<program>.zip``.

    Args:
        project_dir: Root of the plugin crate.
        program: Crate (and library) name.
        cargo: Builder used for the release build.
        frontend: Builder for the frontend; skipped when ``None`` or when the
            frontend has no ``dist/`` directory.

    Returns:
        Path to the written zip archive.
    """
    root = Path(project_dir)
    dist_dir = _reset_dir(root / "dist")

    signature = ""
    if frontend is not None and (frontend.frontend_dir / "dist").exists():
        print_step("Building frontend...")
        await frontend.build()
        frontend_dist = frontend.frontend_dir / "dist"
        bundle = frontend_dist / f"{program}.js"
        if bundle.exists():
            signature = file_sha256(bundle)
        else:
            print_warning(f"Frontend bundle {bundle} not found; signature left empty")
        copy_tree(frontend_dist, dist_dir / "frontend")

    lib_rs = root / "src" / "lib.rs"
    if lib_rs.exists():
        stamp_signature(lib_rs, signature)
        print_step("Building library...")
        await cargo.build(release=True)
        lib_name = library_filename(program)
        built = root / "target" / "release" / lib_name
        if not built.is_file():
            raise ScaffoldIOError(
                "release library not found after build", operation="package release", target=str(built)
            )
        shutil.copy2(built, dist_dir / lib_name)

    output_dir = _reset_dir(root / "output")
    archive = create_zip_archive(dist_dir, output_dir / f"{program}.zip")
    print_success(f"Packaged {archive}")
    return archive
