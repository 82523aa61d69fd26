"""
SHA-1 integrity checks for downloaded artifacts.
"""

import binascii
import hashlib
import pathlib

_CHUNK_SIZE = 1024 * 64


def file_sha1(path: pathlib.Path) -> bytes:
    digest = hashlib.sha1()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.digest()


def _digest_matches(digest: bytes, expected_hex: str) -> bool:
    try:
        expected = binascii.unhexlify(expected_hex.strip())
    except (binascii.Error, ValueError):
        return False
    return expected == digest


def verify(data: bytes, expected_hex: str) -> bool:
    """
    Check ``data`` against a hex encoded sha1 digest.

    The comparison happens on the decoded bytes, so the case of
    ``expected_hex`` does not matter. A value that is not valid hex never
    matches.
    """
    return _digest_matches(hashlib.sha1(data).digest(), expected_hex)


def verify_file(path: pathlib.Path, expected_hex: str) -> bool:
    """Streaming variant of :func:`verify` for files on disk."""
    return _digest_matches(file_sha1(path), expected_hex)
