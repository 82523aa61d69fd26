"""
This module contains the exceptions raised by the felis server bootstrapper.
"""

from typing import Optional


class FelisException(Exception):
    """
    Base exception for every failure in the bootstrap pipeline.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationMissing(FelisException):
    """Raised when the server configuration cannot be located."""

    def __init__(self, searched: str) -> None:
        super().__init__(f"could not locate server configuration ({searched})")
        self.searched = searched


class ConfigurationInvalid(FelisException):
    """Raised when the server configuration exists but cannot be decoded."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"invalid server configuration in {source}: {reason}")
        self.source = source
        self.reason = reason


class UnknownVersion(FelisException):
    """Raised when the version index has no entry for the requested version."""

    def __init__(self, version_id: str) -> None:
        super().__init__(f"Unknown version {version_id}")
        self.version_id = version_id


class MalformedMetadata(FelisException):
    """Raised when a metadata document lacks the fields the resolver needs."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"malformed metadata at {url}: {reason}")
        self.url = url
        self.reason = reason


class MetadataFetchFailed(FelisException):
    """Raised when a metadata document cannot be retrieved."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"failed to fetch metadata from {url}: {reason}")
        self.url = url
        self.reason = reason


class TransportError(FelisException):
    """Raised when an artifact download fails on the network side."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"failed to download {url}: {reason}")
        self.url = url
        self.reason = reason


class FilesystemError(FelisException):
    """Raised when a local path cannot be created, written or read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"filesystem error at {path}: {reason}")
        self.path = path
        self.reason = reason


class IntegrityViolation(FelisException):
    """Raised when downloaded bytes do not match their declared digest."""

    def __init__(self, url: str, expected: str, actual: Optional[str] = None) -> None:
        detail = f"expected sha1 {expected}"
        if actual is not None:
            detail += f", got {actual}"
        super().__init__(f"integrity check failed for {url}: {detail}")
        self.url = url
        self.expected = expected
        self.actual = actual


class EntryPointNotFound(FelisException):
    """Raised when the launch entry point cannot be found on the classpath."""

    def __init__(self, class_name: str, reason: str) -> None:
        super().__init__(f"entry point {class_name} not found: {reason}")
        self.class_name = class_name
        self.reason = reason
