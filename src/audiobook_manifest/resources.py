"""Resource providers -- list the files of a bundle and give local access to them.

A bundle is a folder of files, a single audio file, or a zip-based archive
(.zip or .zab). Hrefs are POSIX paths relative to the bundle root.
"""

from __future__ import annotations

import shutil
import tempfile
import threading
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from loguru import logger

from .errors import ResourceError
from .manifest import Link
from .models import ARCHIVE_EXTENSIONS, media_type_for

log = logger.bind(stage="resources")

# Raised by zipfile for missing, corrupt, encrypted, or unsupported members
MEMBER_ERRORS = (
    KeyError,
    zipfile.BadZipFile,
    zlib.error,
    NotImplementedError,
    RuntimeError,
    EOFError,
    OSError,
)


@runtime_checkable
class ResourceProvider(Protocol):
    """Enumerable, byte-accessible bundle of resources."""

    @property
    def name(self) -> str: ...

    @property
    def media_type(self) -> str | None: ...

    @property
    def links(self) -> tuple[Link, ...]: ...

    def file(self, href: str) -> Path: ...

    def read(self, href: str) -> bytes: ...

    def close(self) -> None: ...


class DirectoryResources:
    """A folder of files on disk, or a standalone file."""

    def __init__(self, root: Path) -> None:
        root = Path(root)
        if not root.exists():
            raise ResourceError(f"No such file or directory: {root}")
        self.root = root
        if root.is_file():
            self._base = root.parent
            self._files = [root]
            self._media_type: str | None = media_type_for(root.name)
        else:
            self._base = root
            self._files = [f for f in root.rglob("*") if f.is_file()]
            self._media_type = None
        self._links = tuple(
            Link(href=href, media_type=media_type_for(href))
            for href in sorted(
                f.relative_to(self._base).as_posix() for f in self._files
            )
        )

    @property
    def name(self) -> str:
        return self.root.stem if self.root.is_file() else self.root.name

    @property
    def media_type(self) -> str | None:
        return self._media_type

    @property
    def links(self) -> tuple[Link, ...]:
        return self._links

    def file(self, href: str) -> Path:
        path = self._base / PurePosixPath(href)
        if not path.is_file():
            raise ResourceError(f"Resource not found: {href}", href=href)
        return path

    def read(self, href: str) -> bytes:
        try:
            return self.file(href).read_bytes()
        except OSError as exc:
            raise ResourceError(f"Failed to read {href}: {exc}", href=href) from exc

    def close(self) -> None:
        pass

    def __enter__(self) -> DirectoryResources:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ZipResources:
    """Members of a zip archive, extracted lazily when a local file is needed."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        try:
            self._zip = zipfile.ZipFile(self.path)
        except (zipfile.BadZipFile, OSError) as exc:
            raise ResourceError(f"Unreadable archive {self.path}: {exc}") from exc
        self._links = tuple(
            Link(href=info.filename, media_type=media_type_for(info.filename))
            for info in self._zip.infolist()
            if not info.is_dir()
        )
        self._lock = threading.Lock()
        self._extract_dir: Path | None = None
        self._extracted: dict[str, Path] = {}

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def media_type(self) -> str | None:
        return media_type_for(self.path.name)

    @property
    def links(self) -> tuple[Link, ...]:
        return self._links

    def file(self, href: str) -> Path:
        with self._lock:
            if href in self._extracted:
                return self._extracted[href]
            if self._extract_dir is None:
                self._extract_dir = Path(tempfile.mkdtemp(prefix="audiobook-"))
            try:
                info = self._zip.getinfo(href)
                extracted = Path(self._zip.extract(info, self._extract_dir))
            except MEMBER_ERRORS as exc:
                raise ResourceError(
                    f"Failed to extract {href}: {exc}", href=href,
                ) from exc
            log.debug(f"Extracted {href} to {extracted}")
            self._extracted[href] = extracted
            return extracted

    def read(self, href: str) -> bytes:
        with self._lock:
            try:
                return self._zip.read(href)
            except MEMBER_ERRORS as exc:
                raise ResourceError(f"Failed to read {href}: {exc}", href=href) from exc

    def close(self) -> None:
        self._zip.close()
        if self._extract_dir is not None:
            shutil.rmtree(self._extract_dir, ignore_errors=True)
            self._extract_dir = None
        self._extracted.clear()

    def __enter__(self) -> ZipResources:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_asset(path: Path) -> DirectoryResources | ZipResources:
    """Open a folder, audio file, or archive as a resource provider.

    Raises ResourceError if the path does not exist or the archive is corrupt.
    """
    path = Path(path)
    if not path.exists():
        raise ResourceError(f"No such file or directory: {path}")
    if path.is_file() and path.suffix.lower() in ARCHIVE_EXTENSIONS:
        log.debug(f"Opening {path.name} as archive")
        return ZipResources(path)
    return DirectoryResources(path)
