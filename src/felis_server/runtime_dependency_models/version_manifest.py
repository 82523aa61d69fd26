"""
Pydantic data models for the remote version metadata service.

The service is queried in two hops: the version manifest lists every release
with a link to its detail document, and the detail document carries the
download location and sha1 of the server bundle.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LauncherVersion(BaseModel):
    """One entry of the version manifest."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    detail_url: str = Field(..., alias="url")


class VersionManifest(BaseModel):
    """
    The version index returned by the well-known manifest endpoint.
    """

    model_config = ConfigDict(extra="ignore")

    versions: List[LauncherVersion]

    def find(self, version_id: str) -> Optional[LauncherVersion]:
        """
        Find the manifest entry for a version.

        Args:
            version_id: The human readable version id, e.g. "1.20.1"

        Returns:
            The first matching LauncherVersion or None if not found
        """
        for version in self.versions:
            if version.id == version_id:
                return version
        return None


class ArtifactDescriptor(BaseModel):
    """Where to download the server bundle and the digest it must match."""

    model_config = ConfigDict(frozen=True)

    download_url: str
    expected_digest_hex: str
