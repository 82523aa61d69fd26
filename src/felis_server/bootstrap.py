"""
Assembles the server classpath.

The pipeline runs strictly forward: load the server configuration, download
the additional libraries concurrently, resolve, download and verify the
server bundle if it is not present yet, copy the bundle's nested libraries
and versions out into the root directory, and finally combine the bundle's
declared classpath with the additional libraries.
"""

import dataclasses
import logging
import pathlib
from typing import List, Optional

import httpx

from felis_server.bundle import mount
from felis_server.felis_config import BootstrapConfig
from felis_server.felis_logger import FelisLogger
from felis_server.metadata import MetadataResolver
from felis_server.runtime_dependency_config import DependencyConfigManager, load_server_config
from felis_server.runtime_dependency_downloader import DependencyDownloader

BUNDLE_LIBRARIES = "META-INF/libraries"
BUNDLE_VERSIONS = "META-INF/versions"


def create_http_client(config: BootstrapConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        http1=True,
        http2=False,
        follow_redirects=True,
        timeout=httpx.Timeout(config.http_timeout),
    )


async def _ensure_bundle(
    config: BootstrapConfig,
    version_id: str,
    client: httpx.AsyncClient,
    downloader: DependencyDownloader,
    logger: FelisLogger,
) -> pathlib.Path:
    bundle_path = config.bundle_path
    if bundle_path.exists():
        logger.log(f"Using existing server bundle {bundle_path}", logging.INFO)
        return bundle_path

    resolver = MetadataResolver(client, logger, config.metadata_url)
    descriptor = await resolver.resolve(version_id)
    return await downloader.download_verified(
        descriptor.download_url, bundle_path, descriptor.expected_digest_hex
    )


async def download_classpath(
    root: pathlib.Path,
    config: Optional[BootstrapConfig] = None,
    logger: Optional[FelisLogger] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[pathlib.Path]:
    """
    Download everything the server needs and return its ordered classpath.

    Args:
        root: Directory every artifact is stored under
        config: Bootstrap settings; read from the environment when omitted
        logger: Logger shared by every stage
        client: HTTP client to use; a client owned by this call is created when omitted

    Returns:
        The bundle's declared classpath entries resolved against ``root``,
        followed by the additional libraries in declaration order

    Raises:
        FelisException: Any failure aborts the pipeline; no partial classpath is returned
    """
    if config is None:
        config = BootstrapConfig.from_environment(root)
    else:
        config = dataclasses.replace(config, root=root)
    logger = logger or FelisLogger()

    server_config = load_server_config(config, logger)

    owns_client = client is None
    if owns_client:
        client = create_http_client(config)
    try:
        config_manager = DependencyConfigManager(server_config, config.libraries_dir)
        config_manager.create_download_plan()
        downloader = DependencyDownloader(client, logger)
        extras = await downloader.download_all_pending(config_manager)

        bundle_path = await _ensure_bundle(
            config, server_config.server_version, client, downloader, logger
        )
    finally:
        if owns_client:
            await client.aclose()

    with mount(bundle_path, logger) as bundle:
        bundle.extract_subtree(BUNDLE_LIBRARIES, config.libraries_dir)
        bundle.extract_subtree(BUNDLE_VERSIONS, config.versions_dir)
        declared = bundle.classpath()

    classpath = [root / entry for entry in declared] + extras
    logger.log(
        f"Assembled classpath with {len(declared)} bundle entries and {len(extras)} additional libraries",
        logging.INFO,
    )
    return classpath
