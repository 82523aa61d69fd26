"""
Runtime dependency downloader.

This package handles:
1. Downloading artifacts from URLs concurrently
2. Short-circuiting artifacts that are already on disk
3. Verifying downloads against their sha1 digest
4. Updating download plan states
"""

from .downloader import DependencyDownloader
from .integrity import file_sha1, verify, verify_file

__all__ = ["DependencyDownloader", "file_sha1", "verify", "verify_file"]
