from .resolver import MetadataResolver

__all__ = ["MetadataResolver"]
