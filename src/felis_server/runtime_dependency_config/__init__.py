"""
Runtime dependency configuration management.

This package handles:
1. Locating and parsing the server configuration
2. Deriving the download plan for every additional library
3. Tracking the outcome of each planned download
"""

from .config_manager import (
    DependencyConfigManager,
    DownloadPlan,
    DownloadStatus,
    load_server_config,
)

__all__ = ["DependencyConfigManager", "DownloadPlan", "DownloadStatus", "load_server_config"]
