"""Upload storage and archive extraction for deployments."""

import asyncio
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import IO, Protocol

from ntando.core.exceptions import InvalidUploadError
from ntando.utils.logging import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = frozenset(
    {
        ".zip", ".html", ".htm", ".js", ".css", ".json", ".txt",
        ".jpg", ".jpeg", ".png", ".svg", ".webp", ".ico",
    }
)
ALLOWED_CONTENT_TYPES = frozenset(
    {
        "text/html",
        "application/javascript",
        "text/css",
        "application/zip",
        "application/x-zip-compressed",
        "image/jpeg",
        "image/png",
        "image/svg+xml",
        "image/webp",
    }
)

_CHUNK_SIZE = 1024 * 1024


class Upload(Protocol):
    """The subset of ``UploadFile`` used here."""

    filename: str | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


def safe_filename(filename: str | None) -> str:
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    if not name or name in (".", ".."):
        raise InvalidUploadError(filename or "", "missing file name")
    return name


def check_upload(filename: str | None, content_type: str | None) -> str:
    """Validate a file's name and type, returning the name to store it under."""
    name = safe_filename(filename)
    suffix = PurePosixPath(name).suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS and content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidUploadError(name, "file type not allowed")
    return name


def _copy_limited(src: IO[bytes], dst: IO[bytes], max_bytes: int | None) -> int:
    written = 0
    while chunk := src.read(_CHUNK_SIZE):
        written += len(chunk)
        if max_bytes is not None and written > max_bytes:
            return -1
        dst.write(chunk)
    return written


def extract_zip(archive: Path, destination: Path, max_bytes: int | None = None) -> int:
    """Extract ``archive`` into ``destination``; returns the number of files.

    Members whose path would land outside ``destination``, or on the archive
    itself, are refused. With ``max_bytes`` set, so is any member larger than
    that once decompressed.
    """
    root = destination.resolve()
    source = archive.resolve()
    count = 0
    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                target = (root / info.filename).resolve()
                if not target.is_relative_to(root) or target == source:
                    raise InvalidUploadError(archive.name, f"unsafe path '{info.filename}'")
                if max_bytes is not None and info.file_size > max_bytes:
                    raise InvalidUploadError(archive.name, f"'{info.filename}' is too large")
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    written = _copy_limited(src, dst, max_bytes)
                if written < 0:
                    # Header understated the size
                    target.unlink()
                    raise InvalidUploadError(archive.name, f"'{info.filename}' is too large")
                count += 1
    except zipfile.BadZipFile as e:
        raise InvalidUploadError(archive.name, "not a valid zip archive") from e
    return count


class UploadStorage:
    """Per-deployment upload directories under a root directory."""

    def __init__(self, root: Path, max_files: int = 50, max_bytes: int = 100 * 1024 * 1024):
        self.root = root
        self.max_files = max_files
        self.max_bytes = max_bytes

    def directory(self, deployment_id: str) -> Path:
        return self.root / deployment_id

    def validate(self, uploads: list[Upload]) -> None:
        """Check file count, names and types before anything is persisted.

        Names are compared after directory parts are stripped.
        """
        if len(uploads) > self.max_files:
            raise InvalidUploadError(
                "", f"too many files ({len(uploads)} > {self.max_files})"
            )
        names: set[str] = set()
        for upload in uploads:
            name = check_upload(upload.filename, upload.content_type)
            if name in names:
                raise InvalidUploadError(name, "duplicate file name")
            names.add(name)

    async def save(self, deployment_id: str, uploads: list[Upload]) -> list[Path]:
        """Write uploads into the deployment directory."""
        directory = self.directory(deployment_id)
        directory.mkdir(parents=True, exist_ok=True)

        saved: list[Path] = []
        for upload in uploads:
            name = check_upload(upload.filename, upload.content_type)
            path = directory / name
            written = 0
            with open(path, "wb") as f:
                while chunk := await upload.read(_CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise InvalidUploadError(name, "file too large")
                    f.write(chunk)
            saved.append(path)

        logger.info(
            "uploads.saved",
            deployment_id=deployment_id,
            files=len(saved),
        )
        return saved

    async def unpack(self, deployment_id: str) -> int:
        """Extract every zip archive in the deployment directory."""
        directory = self.directory(deployment_id)
        if not directory.exists():
            return 0
        total = 0
        for archive in sorted(directory.glob("*.zip")):
            total += await asyncio.to_thread(extract_zip, archive, directory, self.max_bytes)
        return total

    async def remove(self, deployment_id: str) -> None:
        directory = self.directory(deployment_id)
        if directory.exists():
            await asyncio.to_thread(shutil.rmtree, directory)
