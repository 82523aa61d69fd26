"""
Resolves a server version id to the bundle download location.

Resolution takes two hops: the version manifest maps the id to a detail
document, and the detail document's ``downloads.server`` object carries the
bundle url and sha1.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from felis_server.felis_exceptions import MalformedMetadata, MetadataFetchFailed, UnknownVersion
from felis_server.felis_logger import FelisLogger
from felis_server.runtime_dependency_models import ArtifactDescriptor, VersionManifest


class MetadataResolver:
    def __init__(self, client: httpx.AsyncClient, logger: FelisLogger, manifest_url: str):
        self.client = client
        self.logger = logger
        self.manifest_url = manifest_url

    async def _get_json(self, url: str) -> Any:
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise MetadataFetchFailed(url, str(e)) from e
        try:
            return response.json()
        except ValueError as e:
            raise MalformedMetadata(url, f"invalid json: {e}") from e

    async def fetch_manifest(self) -> VersionManifest:
        data = await self._get_json(self.manifest_url)
        try:
            return VersionManifest.model_validate(data)
        except ValidationError as e:
            raise MalformedMetadata(self.manifest_url, str(e)) from e

    async def resolve(self, version_id: str) -> ArtifactDescriptor:
        """
        Resolve ``version_id`` to the server bundle's url and sha1.

        Raises:
            UnknownVersion: If the manifest has no entry for ``version_id``
            MalformedMetadata: If a document is not json or lacks required fields
            MetadataFetchFailed: If either document cannot be retrieved
        """
        manifest = await self.fetch_manifest()
        version = manifest.find(version_id)
        if version is None:
            raise UnknownVersion(version_id)

        self.logger.log(f"Resolving version {version_id} via {version.detail_url}", logging.INFO)
        detail = await self._get_json(version.detail_url)

        downloads = detail.get("downloads") if isinstance(detail, dict) else None
        server = downloads.get("server") if isinstance(downloads, dict) else None
        if not isinstance(server, dict):
            raise MalformedMetadata(version.detail_url, "missing downloads.server")
        url, sha1 = server.get("url"), server.get("sha1")
        if not isinstance(url, str) or not url:
            raise MalformedMetadata(version.detail_url, "missing downloads.server.url")
        if not isinstance(sha1, str) or not sha1:
            raise MalformedMetadata(version.detail_url, "missing downloads.server.sha1")

        return ArtifactDescriptor(download_url=url, expected_digest_hex=sha1)
