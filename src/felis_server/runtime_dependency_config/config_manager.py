"""
Dependency configuration manager.

Handles locating and decoding the server configuration and turning its
additional libraries into download plans with deterministic destinations.
"""

import logging
import pathlib
from importlib import resources
from typing import Dict, List, Optional

from pydantic import ValidationError

from felis_server.felis_config import BootstrapConfig
from felis_server.felis_exceptions import ConfigurationInvalid, ConfigurationMissing
from felis_server.felis_logger import FelisLogger
from felis_server.runtime_dependency_models import Library, ServerConfig


class DownloadStatus:
    """Enumeration of download statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class DownloadPlan:
    """
    A plan to download a specific library.

    Pairs the source url with the destination path; the unit of concurrency
    for the downloader.
    """

    def __init__(
            self,
            dependency_key: str,
            url: str,
            destination_path: pathlib.Path,
            status: str = DownloadStatus.PENDING,
    ):
        """
        Initialize a download plan.

        Args:
            dependency_key: Unique key for the dependency (its coordinate)
            url: URL to download from
            destination_path: Where the downloaded file is stored
            status: Current download status
        """
        self.dependency_key = dependency_key
        self.url = url
        self.destination_path = destination_path
        self.status = status
        self.error_message: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"DownloadPlan(key={self.dependency_key}, "
            f"status={self.status}, url={self.url})"
        )


def load_server_config(config: BootstrapConfig, logger: FelisLogger) -> ServerConfig:
    """
    Locate and decode the server configuration.

    The root directory is searched first, then the ``felis_server`` package
    data, which plays the role of a resource bundled with the launcher.

    Raises:
        ConfigurationMissing: If neither location holds the file
        ConfigurationInvalid: If the file cannot be decoded
    """
    local = config.root / config.server_config_name
    packaged = resources.files("felis_server").joinpath(config.server_config_name)

    if local.is_file():
        source, text = str(local), local.read_text(encoding="utf-8")
    elif packaged.is_file():
        source, text = str(packaged), packaged.read_text(encoding="utf-8")
    else:
        raise ConfigurationMissing(f"{local} or package resource {config.server_config_name}")

    try:
        server_config = ServerConfig.from_json(text)
    except (ValueError, ValidationError) as e:
        raise ConfigurationInvalid(source, str(e)) from e

    logger.log(
        f"Loaded server configuration from {source}: version {server_config.server_version}, "
        f"{len(server_config.additional_libraries)} additional libraries",
        logging.INFO,
    )
    return server_config


class DependencyConfigManager:
    """
    Turns the additional libraries of a ServerConfig into download plans and
    tracks their outcome.
    """

    def __init__(self, server_config: ServerConfig, libraries_dir: pathlib.Path):
        """
        Initialize the dependency config manager.

        Args:
            server_config: Loaded server configuration
            libraries_dir: Base directory for downloaded libraries
        """
        self.server_config = server_config
        self.libraries_dir = libraries_dir
        self.download_plans: List[DownloadPlan] = []

    def create_download_plan(self) -> List[DownloadPlan]:
        """
        Create one download plan per additional library, in declaration order.
        """
        self.download_plans = [
            self._create_plan_for_library(library)
            for library in self.server_config.additional_libraries
        ]
        return self.download_plans

    def _create_plan_for_library(self, library: Library) -> DownloadPlan:
        return DownloadPlan(
            dependency_key=library.name,
            url=library.download_url,
            destination_path=library.destination(self.libraries_dir),
        )

    def get_pending_downloads(self) -> List[DownloadPlan]:
        return [p for p in self.download_plans if p.status == DownloadStatus.PENDING]

    def mark_download_completed(
        self, plan: DownloadPlan, success: bool = True, error_message: Optional[str] = None
    ) -> None:
        """
        Mark a download plan as completed or failed.

        Args:
            plan: The download plan to mark
            success: Whether the download was successful
            error_message: The failure reason, if any
        """
        plan.status = DownloadStatus.COMPLETED if success else DownloadStatus.FAILED
        plan.error_message = None if success else (error_message or "Download failed")

    def get_download_summary(self) -> Dict[str, int]:
        """
        Get a summary of download results.

        Returns:
            Dictionary with counts of completed, failed, and pending downloads
        """
        statuses = [p.status for p in self.download_plans]
        completed = statuses.count(DownloadStatus.COMPLETED)
        failed = statuses.count(DownloadStatus.FAILED)
        pending = len(statuses) - completed - failed

        return {
            "completed": completed,
            "failed": failed,
            "pending": pending,
            "total": len(statuses),
        }
