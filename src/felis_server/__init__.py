"""
felis-server bootstraps a felis Minecraft server: it downloads the server
bundle and additional libraries, assembles the classpath and launches the
server entry point.
"""

from felis_server.bootstrap import download_classpath
from felis_server.felis_config import BootstrapConfig
from felis_server.felis_exceptions import FelisException
from felis_server.felis_logger import FelisLogger
from felis_server.launcher import JavaLauncher

__all__ = [
    "BootstrapConfig",
    "FelisException",
    "FelisLogger",
    "JavaLauncher",
    "download_classpath",
]
