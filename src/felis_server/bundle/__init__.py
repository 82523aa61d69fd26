from .archive import CLASSPATH_MANIFEST, MountedArchive, mount

__all__ = ["CLASSPATH_MANIFEST", "MountedArchive", "mount"]
