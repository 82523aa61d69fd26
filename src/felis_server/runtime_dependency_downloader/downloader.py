"""
Artifact downloader implementation.

Handles concurrent, idempotent downloads of libraries and the server bundle.
"""

import asyncio
import logging
import os
import pathlib
from typing import Dict, List, Optional

import httpx

from felis_server.felis_exceptions import FilesystemError, IntegrityViolation, TransportError
from felis_server.felis_logger import FelisLogger
from felis_server.runtime_dependency_config.config_manager import (
    DependencyConfigManager,
    DownloadPlan,
    DownloadStatus,
)
from felis_server.runtime_dependency_downloader import integrity


def _partial_path(destination: pathlib.Path) -> pathlib.Path:
    return destination.with_name(destination.name + ".part")


class DependencyDownloader:
    """
    Downloads artifacts to deterministic destination paths.

    A destination that already exists is returned as is, without any network
    traffic and without being verified again. New downloads are streamed into
    a ``.part`` sibling and only renamed onto the destination once the body is
    complete, so an interrupted run never leaves a truncated artifact behind
    that a later run would mistake for a cache hit.
    """

    def __init__(self, client: httpx.AsyncClient, logger: FelisLogger):
        """
        Initialize the dependency downloader.

        Args:
            client: The HTTP client used for every request
            logger: Logger for progress and error messages
        """
        self.client = client
        self.logger = logger
        # One task per destination; concurrent requests for it share the task
        self._in_flight: Dict[pathlib.Path, "asyncio.Task[pathlib.Path]"] = {}

    def fetch(self, url: str, destination: pathlib.Path) -> "asyncio.Task[pathlib.Path]":
        """
        Schedule the download of ``url`` to ``destination``.

        Must be called from a running event loop. The returned task resolves
        to ``destination`` once the file is in place; the caller decides when
        to await it. Fetches of a destination that is still being downloaded
        return the task already in flight.
        """
        task = self._in_flight.get(destination)
        if task is None or task.done():
            task = asyncio.ensure_future(self.download(url, destination))
            self._in_flight[destination] = task
            task.add_done_callback(lambda done: self._forget(destination, done))
        return task

    def _forget(self, destination: pathlib.Path, task: "asyncio.Task[pathlib.Path]") -> None:
        if self._in_flight.get(destination) is task:
            del self._in_flight[destination]

    async def download(self, url: str, destination: pathlib.Path) -> pathlib.Path:
        """
        Download ``url`` to ``destination`` unless it is already present.

        Raises:
            TransportError: On network, DNS, TLS or HTTP status failures
            FilesystemError: If the parent directories or file cannot be written
        """
        if destination.exists():
            self.logger.log(f"Using cached {destination}", logging.DEBUG)
            return destination

        self.logger.log(f"Downloading {url} to {destination}", logging.INFO)
        partial = await self._stream_to_partial(url, destination)
        self._commit(partial, destination)
        return destination

    async def download_verified(
        self, url: str, destination: pathlib.Path, expected_sha1: str
    ) -> pathlib.Path:
        """
        Download ``url`` and only move it to ``destination`` if its sha1 matches.

        Raises:
            IntegrityViolation: If the downloaded bytes do not match ``expected_sha1``
        """
        self.logger.log(f"Downloading {url} to {destination}", logging.INFO)
        partial = await self._stream_to_partial(url, destination)

        try:
            if integrity.verify_file(partial, expected_sha1):
                actual = None
            else:
                actual = integrity.file_sha1(partial).hex()
                partial.unlink()
        except OSError as e:
            raise FilesystemError(str(partial), str(e)) from e

        if actual is not None:
            self.logger.log(
                f"Integrity check failed for {url}",
                logging.ERROR,
                f"expected {expected_sha1}, got {actual}",
            )
            raise IntegrityViolation(url, expected_sha1, actual)

        self.logger.log(f"Verified sha1 of {destination}", logging.INFO)
        self._commit(partial, destination)
        return destination

    async def _stream_to_partial(self, url: str, destination: pathlib.Path) -> pathlib.Path:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(str(destination.parent), str(e)) from e

        partial = _partial_path(destination)
        try:
            async with self.client.stream("GET", url) as response:
                response.raise_for_status()
                with open(partial, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            raise TransportError(url, str(e)) from e
        except OSError as e:
            raise FilesystemError(str(partial), str(e)) from e
        return partial

    @staticmethod
    def _commit(partial: pathlib.Path, destination: pathlib.Path) -> None:
        try:
            os.replace(partial, destination)
        except OSError as e:
            raise FilesystemError(str(destination), str(e)) from e

    async def download_all_pending(self, config_manager: DependencyConfigManager) -> List[pathlib.Path]:
        """
        Download every pending plan concurrently.

        All downloads are started before any is awaited, and all of them are
        allowed to finish before a failure is raised.

        Returns:
            The destination paths in plan order, regardless of completion order

        Raises:
            FelisException: The first failure in plan order, if any download failed
        """
        pending = config_manager.get_pending_downloads()

        if not pending:
            self.logger.log("No pending downloads", logging.INFO)
            return []

        self.logger.log(f"Starting download of {len(pending)} dependencies", logging.INFO)

        for plan in pending:
            plan.status = DownloadStatus.IN_PROGRESS
        tasks = [self.fetch(plan.url, plan.destination_path) for plan in pending]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        first_error: Optional[BaseException] = None
        paths: List[pathlib.Path] = []
        for plan, result in zip(pending, results):
            if isinstance(result, BaseException):
                self._record_failure(config_manager, plan, result)
                first_error = first_error or result
            else:
                config_manager.mark_download_completed(plan, success=True)
                paths.append(result)

        summary = config_manager.get_download_summary()
        self.logger.log(
            f"Download summary: {summary['completed']} completed, "
            f"{summary['failed']} failed, {summary['pending']} pending",
            logging.INFO,
        )

        if first_error is not None:
            raise first_error
        return paths

    def _record_failure(
        self, config_manager: DependencyConfigManager, plan: DownloadPlan, error: BaseException
    ) -> None:
        error_msg = f"Failed to download {plan.dependency_key}: {error}"
        self.logger.log(error_msg, logging.ERROR)
        config_manager.mark_download_completed(plan, success=False, error_message=error_msg)
