"""Zip a project directory for upload."""

import zipfile
from pathlib import Path

EXCLUDED_DIRS = frozenset({".git", "node_modules"})


def create_archive(project_path: Path, destination: Path) -> Path:
    """Write every file under ``project_path`` into the zip at ``destination``.

    Paths inside the archive are relative to ``project_path``. Version control
    and dependency directories are skipped, as is the archive itself.
    """
    target = destination.resolve()
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for path in sorted(project_path.rglob("*")):
            relative = path.relative_to(project_path)
            if any(part in EXCLUDED_DIRS for part in relative.parts):
                continue
            if not path.is_file() or path.resolve() == target:
                continue
            zf.write(path, relative.as_posix())
    return destination
