from .image_store import ImageStore, artifact_name

__all__ = [
    "ImageStore",
    "artifact_name",
]
