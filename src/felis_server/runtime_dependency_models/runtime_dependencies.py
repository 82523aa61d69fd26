"""
Pydantic data models for server.config.json.

This module provides the models describing which server version to bootstrap
and which additional maven-style libraries to place on the classpath, along
with the deterministic paths and URLs derived from a library coordinate.
"""

import json
import pathlib
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Library(BaseModel):
    """
    An additional library identified by a ``group:artifact:version`` coordinate.

    The coordinate together with the repository base url determines both the
    download url and the storage path below the libraries directory.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(..., description="Coordinate in group:artifact:version form")
    url: str = Field(..., description="Base url of the maven-style repository")

    @field_validator("name")
    @classmethod
    def _check_coordinate(cls, value: str) -> str:
        parts = value.split(":")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"coordinate must be group:artifact:version, got {value!r}")
        return value

    @property
    def group_id(self) -> str:
        return self.name.split(":")[0]

    @property
    def artifact_id(self) -> str:
        return self.name.split(":")[1]

    @property
    def version(self) -> str:
        return self.name.split(":")[2]

    @property
    def file_name(self) -> str:
        return f"{self.artifact_id}-{self.version}.jar"

    @property
    def group_path(self) -> str:
        """The group id with dots turned into path segments."""
        return self.group_id.replace(".", "/")

    @property
    def relative_path(self) -> str:
        """
        Storage path relative to the libraries directory, always ``/`` separated.
        """
        return f"{self.group_path}/{self.artifact_id}/{self.version}/{self.file_name}"

    @property
    def download_url(self) -> str:
        return f"{self.url}{self.relative_path}"

    def destination(self, libraries_dir: pathlib.Path) -> pathlib.Path:
        """
        Resolve the on-disk location of this library below ``libraries_dir``.

        Args:
            libraries_dir: The directory holding every downloaded library

        Returns:
            The jar path; a pure function of the coordinate and ``libraries_dir``
        """
        return libraries_dir.joinpath(*self.relative_path.split("/"))


class ServerConfig(BaseModel):
    """
    Complete server bootstrap configuration.

    Structure:
    {
      "serverVersion": "1.20.1",
      "additionalLibraries": [
        {"name": "org.example:foo:1.0", "url": "https://repo.example/"},
        ...
      ]
    }
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    server_version: str = Field(..., alias="serverVersion")
    additional_libraries: List[Library] = Field(
        default_factory=list, alias="additionalLibraries"
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerConfig":
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, text: str) -> "ServerConfig":
        return cls.model_validate(json.loads(text))
