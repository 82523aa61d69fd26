"""
Configuration parameters for the felis server bootstrapper.
"""

import os
import pathlib
import shutil
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

from felis_server.felis_exceptions import ConfigurationInvalid

VERSION_MANIFEST_URL = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"
BUNDLE_FILE_NAME = "bundler.jar"
SERVER_CONFIG_NAME = "server.config.json"
ENTRY_POINT_CLASS = "felis.MainKt"
LIBRARIES_DIR = "libraries"
VERSIONS_DIR = "versions"


def _default_java_executable() -> str:
    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        candidate = pathlib.Path(java_home, "bin", "java")
        if candidate.exists():
            return str(candidate)
    return shutil.which("java") or "java"


def _parse_timeout(value: str) -> Optional[float]:
    if value.strip().lower() == "none":
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationInvalid("FELIS_HTTP_TIMEOUT", f"expected seconds or \"none\", got {value!r}") from e


@dataclass
class BootstrapConfig:
    """
    Configuration parameters
    """

    root: pathlib.Path = field(default_factory=lambda: pathlib.Path("."))
    metadata_url: str = VERSION_MANIFEST_URL
    bundle_file_name: str = BUNDLE_FILE_NAME
    server_config_name: str = SERVER_CONFIG_NAME
    entry_point_class: str = ENTRY_POINT_CLASS
    java_executable: str = field(default_factory=_default_java_executable)
    # None disables timeouts entirely
    http_timeout: Optional[float] = 60.0

    @property
    def libraries_dir(self) -> pathlib.Path:
        return self.root / LIBRARIES_DIR

    @property
    def versions_dir(self) -> pathlib.Path:
        return self.root / VERSIONS_DIR

    @property
    def bundle_path(self) -> pathlib.Path:
        return self.root / self.bundle_file_name

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BootstrapConfig":
        """
        Create a BootstrapConfig instance from a dictionary
        """
        instance = cls()
        known = {f.name for f in fields(cls)}
        for key, value in d.items():
            if key not in known:
                raise ValueError(f"Unknown configuration key: {key}")
            if key == "root":
                value = pathlib.Path(value)
            setattr(instance, key, value)
        return instance

    @classmethod
    def from_environment(
        cls, root: pathlib.Path, env: Optional[Mapping[str, str]] = None
    ) -> "BootstrapConfig":
        """
        Create a BootstrapConfig rooted at ``root``, applying the optional
        FELIS_JAVA, FELIS_HTTP_TIMEOUT and FELIS_METADATA_URL overrides.
        """
        env = os.environ if env is None else env
        overrides: Dict[str, Any] = {"root": root}
        if env.get("FELIS_JAVA"):
            overrides["java_executable"] = env["FELIS_JAVA"]
        if env.get("FELIS_METADATA_URL"):
            overrides["metadata_url"] = env["FELIS_METADATA_URL"]
        timeout = env.get("FELIS_HTTP_TIMEOUT")
        if timeout:
            overrides["http_timeout"] = _parse_timeout(timeout)
        return cls.from_dict(overrides)
