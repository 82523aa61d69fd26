"""
Runtime dependency models for the server bootstrapper.

This package provides Pydantic data models for parsing the server
configuration and the remote version metadata documents.
"""

from .runtime_dependencies import (
    Library,
    ServerConfig,
)
from .version_manifest import (
    ArtifactDescriptor,
    LauncherVersion,
    VersionManifest,
)

__all__ = [
    # Server configuration
    "Library",
    "ServerConfig",
    # Version metadata
    "ArtifactDescriptor",
    "LauncherVersion",
    "VersionManifest",
]
