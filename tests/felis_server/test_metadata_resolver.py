"""
Tests for the two-hop version metadata resolver.
"""

import pytest

from felis_server.felis_exceptions import MalformedMetadata, MetadataFetchFailed, UnknownVersion
from felis_server.felis_logger import FelisLogger
from felis_server.metadata import MetadataResolver
from tests.test_utils import MANIFEST_URL, StubRemote

DETAIL_URL = "https://meta.example/v1/packages/abc/1.20.1.json"
SERVER_URL = "https://launcher.example/objects/abc/server.jar"


def manifest(*entries):
    return {"latest": {}, "versions": [{"id": i, "url": u, "type": "release"} for i, u in entries]}


def detail(server):
    return {"id": "1.20.1", "downloads": {"client": {"url": "x", "sha1": "y"}, "server": server}}


@pytest.mark.asyncio
async def test_resolves_version_to_server_download():
    remote = StubRemote(
        {
            MANIFEST_URL: manifest(("1.20", "https://meta.example/1.20.json"), ("1.20.1", DETAIL_URL)),
            DETAIL_URL: detail({"url": SERVER_URL, "sha1": "ABCDEF0123", "size": 10}),
        }
    )

    async with remote.client() as client:
        descriptor = await MetadataResolver(client, FelisLogger(), MANIFEST_URL).resolve("1.20.1")

    assert descriptor.download_url == SERVER_URL
    assert descriptor.expected_digest_hex == "ABCDEF0123"
    assert remote.requests == [MANIFEST_URL, DETAIL_URL]


@pytest.mark.asyncio
async def test_unknown_version_stops_after_the_index():
    remote = StubRemote({MANIFEST_URL: manifest(("1.20.1", DETAIL_URL))})

    async with remote.client() as client:
        with pytest.raises(UnknownVersion) as exc_info:
            await MetadataResolver(client, FelisLogger(), MANIFEST_URL).resolve("1.7.10")

    assert exc_info.value.version_id == "1.7.10"
    assert remote.requests == [MANIFEST_URL]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "document",
    [
        detail({"url": SERVER_URL}),
        detail({"sha1": "abc"}),
        {"id": "1.20.1", "downloads": {}},
        {"id": "1.20.1"},
        ["not", "an", "object"],
    ],
)
async def test_missing_server_fields_are_malformed(document):
    remote = StubRemote({MANIFEST_URL: manifest(("1.20.1", DETAIL_URL)), DETAIL_URL: document})

    async with remote.client() as client:
        with pytest.raises(MalformedMetadata) as exc_info:
            await MetadataResolver(client, FelisLogger(), MANIFEST_URL).resolve("1.20.1")

    assert exc_info.value.url == DETAIL_URL


@pytest.mark.asyncio
async def test_index_without_versions_is_malformed():
    remote = StubRemote({MANIFEST_URL: {"latest": {}}})

    async with remote.client() as client:
        with pytest.raises(MalformedMetadata):
            await MetadataResolver(client, FelisLogger(), MANIFEST_URL).resolve("1.20.1")


@pytest.mark.asyncio
async def test_transport_failures_become_metadata_fetch_failed():
    remote = StubRemote({MANIFEST_URL: manifest(("1.20.1", DETAIL_URL)), DETAIL_URL: 503})

    async with remote.client() as client:
        with pytest.raises(MetadataFetchFailed) as exc_info:
            await MetadataResolver(client, FelisLogger(), MANIFEST_URL).resolve("1.20.1")

    assert exc_info.value.url == DETAIL_URL
