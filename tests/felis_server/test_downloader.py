"""
Tests for the concurrent, idempotent artifact downloader.
"""

import asyncio
import hashlib
import random

import httpx
import pytest

from felis_server.felis_exceptions import IntegrityViolation, TransportError
from felis_server.felis_logger import FelisLogger
from felis_server.runtime_dependency_config import DependencyConfigManager, DownloadStatus
from felis_server.runtime_dependency_downloader import DependencyDownloader
from felis_server.runtime_dependency_models import ServerConfig
from tests.test_utils import StubRemote

URL = "https://repo.example/org/example/foo/1.0/foo-1.0.jar"


@pytest.mark.asyncio
async def test_fetch_downloads_once_and_reuses_existing_file(tmp_path):
    remote = StubRemote({URL: b"jar-bytes"})
    destination = tmp_path / "libraries" / "org" / "example" / "foo" / "1.0" / "foo-1.0.jar"

    async with remote.client() as client:
        downloader = DependencyDownloader(client, FelisLogger())
        first = await downloader.fetch(URL, destination)
        second = await downloader.fetch(URL, destination)

    assert first == second == destination
    assert destination.read_bytes() == b"jar-bytes"
    assert remote.count(URL) == 1


@pytest.mark.asyncio
async def test_existing_destination_is_never_fetched_or_rewritten(tmp_path):
    remote = StubRemote({URL: b"fresh"})
    destination = tmp_path / "foo-1.0.jar"
    destination.write_bytes(b"stale")

    async with remote.client() as client:
        result = await DependencyDownloader(client, FelisLogger()).download(URL, destination)

    assert result == destination
    assert destination.read_bytes() == b"stale"
    assert remote.requests == []


@pytest.mark.asyncio
async def test_http_error_raises_transport_error_and_leaves_no_destination(tmp_path):
    remote = StubRemote({URL: 500})
    destination = tmp_path / "foo-1.0.jar"

    async with remote.client() as client:
        with pytest.raises(TransportError) as exc_info:
            await DependencyDownloader(client, FelisLogger()).download(URL, destination)

    assert exc_info.value.url == URL
    assert not destination.exists()


@pytest.mark.asyncio
async def test_download_verified_rejects_mismatching_digest(tmp_path):
    remote = StubRemote({URL: b"tampered"})
    destination = tmp_path / "bundler.jar"

    async with remote.client() as client:
        with pytest.raises(IntegrityViolation):
            await DependencyDownloader(client, FelisLogger()).download_verified(
                URL, destination, hashlib.sha1(b"original").hexdigest()
            )

    assert not destination.exists()
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_download_verified_accepts_matching_digest(tmp_path):
    remote = StubRemote({URL: b"original"})
    destination = tmp_path / "bundler.jar"

    async with remote.client() as client:
        await DependencyDownloader(client, FelisLogger()).download_verified(
            URL, destination, hashlib.sha1(b"original").hexdigest().upper()
        )

    assert destination.read_bytes() == b"original"


@pytest.mark.asyncio
async def test_download_all_pending_preserves_declaration_order(tmp_path):
    names = ["org.example:one:1.0", "org.example:two:1.0", "org.example:three:1.0"]
    server_config = ServerConfig.from_dict(
        {
            "serverVersion": "1.20.1",
            "additionalLibraries": [{"name": n, "url": "https://repo.example/"} for n in names],
        }
    )
    libraries = server_config.additional_libraries
    rng = random.Random(1234)
    remote = StubRemote(
        routes={lib.download_url: lib.name.encode() for lib in libraries},
        delays={lib.download_url: rng.uniform(0.0, 0.05) for lib in libraries},
    )
    # make the first declared library finish last
    remote.delays[libraries[0].download_url] = 0.1

    config_manager = DependencyConfigManager(server_config, tmp_path / "libraries")
    config_manager.create_download_plan()

    async with remote.client() as client:
        paths = await DependencyDownloader(client, FelisLogger()).download_all_pending(config_manager)

    assert paths == [lib.destination(tmp_path / "libraries") for lib in libraries]
    assert [p.read_bytes() for p in paths] == [n.encode() for n in names]
    assert config_manager.get_download_summary() == {"completed": 3, "failed": 0, "pending": 0, "total": 3}


@pytest.mark.asyncio
async def test_download_all_pending_raises_after_all_finish(tmp_path):
    server_config = ServerConfig.from_dict(
        {
            "serverVersion": "1.20.1",
            "additionalLibraries": [
                {"name": "org.example:missing:1.0", "url": "https://repo.example/"},
                {"name": "org.example:present:1.0", "url": "https://repo.example/"},
            ],
        }
    )
    missing, present = server_config.additional_libraries
    remote = StubRemote({present.download_url: b"ok"}, delays={present.download_url: 0.02})
    config_manager = DependencyConfigManager(server_config, tmp_path / "libraries")
    plans = config_manager.create_download_plan()

    async with remote.client() as client:
        with pytest.raises(TransportError) as exc_info:
            await DependencyDownloader(client, FelisLogger()).download_all_pending(config_manager)

    assert exc_info.value.url == missing.download_url
    assert [p.status for p in plans] == [DownloadStatus.FAILED, DownloadStatus.COMPLETED]
    assert present.destination(tmp_path / "libraries").read_bytes() == b"ok"


@pytest.mark.asyncio
async def test_libraries_sharing_a_destination_download_once(tmp_path):
    server_config = ServerConfig.from_dict(
        {
            "serverVersion": "1.20.1",
            "additionalLibraries": [
                {"name": "org.example:foo:1.0", "url": "https://repo.example/"},
                {"name": "org.example:foo:1.0", "url": "https://repo.example/"},
            ],
        }
    )
    requests = []

    async def chunked_body():
        for chunk in (b"ab", b"cd", b"ef"):
            await asyncio.sleep(0.01)
            yield chunk

    async def handler(request: httpx.Request) -> httpx.Response:
        requests.append(str(request.url))
        return httpx.Response(200, content=chunked_body())

    config_manager = DependencyConfigManager(server_config, tmp_path / "libraries")
    config_manager.create_download_plan()

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        paths = await DependencyDownloader(client, FelisLogger()).download_all_pending(config_manager)

    destination = server_config.additional_libraries[0].destination(tmp_path / "libraries")
    assert paths == [destination, destination]
    assert destination.read_bytes() == b"abcdef"
    assert not destination.with_name("foo-1.0.jar.part").exists()
    assert requests == [URL]
    assert config_manager.get_download_summary()["completed"] == 2
