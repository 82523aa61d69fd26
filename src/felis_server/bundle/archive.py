"""
Read-only, path based access to the server bundle.

The bundle is a jar (zip) archive. Mounting it gives random access to its
entries so individual subtrees can be copied out without unpacking the
whole archive.
"""

import logging
import pathlib
import shutil
import zipfile
from typing import List, Optional

from felis_server.felis_exceptions import FilesystemError
from felis_server.felis_logger import FelisLogger

CLASSPATH_MANIFEST = "META-INF/classpath-joined"
CLASSPATH_SEPARATOR = ";"


def _normalize_prefix(prefix: str) -> str:
    return prefix.strip("/")


def _safe_relative_parts(path: pathlib.Path, relative: str) -> List[str]:
    parts = [p for p in relative.split("/") if p]
    if relative.startswith("/") or any(p == ".." for p in parts):
        raise FilesystemError(str(path), f"entry {relative!r} escapes the extraction root")
    return parts


class MountedArchive:
    """
    A live, read-only handle onto an archive file.

    The handle may serve any number of lookups and extractions until it is
    closed; afterwards every operation raises FilesystemError. Use it as a
    context manager so it is released on every exit path.
    """

    def __init__(self, path: pathlib.Path, logger: Optional[FelisLogger] = None):
        self.path = path
        self.logger = logger or FelisLogger()
        try:
            self._zip: Optional[zipfile.ZipFile] = zipfile.ZipFile(path)
        except (OSError, zipfile.BadZipFile) as e:
            raise FilesystemError(str(path), f"cannot mount archive: {e}") from e

    def __enter__(self) -> "MountedArchive":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._zip is None

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def _archive(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise FilesystemError(str(self.path), "archive is closed")
        return self._zip

    def list_entries(self, prefix: str = "") -> List[str]:
        """
        List the files below ``prefix``.

        Args:
            prefix: Directory inside the archive, e.g. "META-INF/libraries"

        Returns:
            Paths relative to ``prefix``, in archive order; directories excluded
        """
        prefix = _normalize_prefix(prefix)
        start = f"{prefix}/" if prefix else ""
        return [
            info.filename[len(start):]
            for info in self._archive().infolist()
            if info.filename.startswith(start) and not info.is_dir() and info.filename != start
        ]

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        try:
            return self._archive().read(_normalize_prefix(path)).decode(encoding)
        except KeyError as e:
            raise FilesystemError(f"{self.path}!/{path}", "no such entry") from e

    def extract_subtree(self, source_prefix: str, destination_root: pathlib.Path) -> int:
        """
        Copy every entry below ``source_prefix`` to the same relative path
        below ``destination_root``.

        Files that already exist at their destination are left untouched, so
        re-running against a partially populated directory only adds what is
        missing.

        Returns:
            The number of files written
        """
        archive = self._archive()
        prefix = _normalize_prefix(source_prefix)
        start = f"{prefix}/" if prefix else ""
        written = 0
        skipped = 0

        for info in archive.infolist():
            if not info.filename.startswith(start):
                continue
            relative = info.filename[len(start):]
            if not relative:
                continue
            target = destination_root.joinpath(*_safe_relative_parts(self.path, relative))

            try:
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as src, open(target, "xb") as dst:
                    shutil.copyfileobj(src, dst)
                written += 1
            except FileExistsError:
                skipped += 1
            except OSError as e:
                raise FilesystemError(str(target), str(e)) from e

        self.logger.log(
            f"Extracted {written} files from {self.path}!/{prefix} to {destination_root} "
            f"({skipped} already present)",
            logging.INFO,
        )
        return written

    def classpath(self) -> List[str]:
        """The relative classpath entries declared by the bundle manifest."""
        text = self.read_text(CLASSPATH_MANIFEST)
        return [entry.strip() for entry in text.split(CLASSPATH_SEPARATOR) if entry.strip()]


def mount(path: pathlib.Path, logger: Optional[FelisLogger] = None) -> MountedArchive:
    return MountedArchive(path, logger)
