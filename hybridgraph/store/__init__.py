from ..config import settings
from .base import GraphStore
from .blob_store import BlobStore, InMemoryBlobStore, LocalBlobStore
from .json_store import JsonGraphStore
from .memory_store import InMemoryGraphStore


def create_graph_store() -> GraphStore:
    """Build the structured store selected by settings.storage_backend."""
    if settings.storage_backend == "memory":
        return InMemoryGraphStore()
    elif settings.storage_backend == "json":
        return JsonGraphStore(settings.graph_storage_path)
    else:
        raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


def create_blob_store() -> BlobStore:
    return LocalBlobStore(settings.blob_storage_root)


__all__ = [
    "GraphStore",
    "InMemoryGraphStore",
    "JsonGraphStore",
    "BlobStore",
    "InMemoryBlobStore",
    "LocalBlobStore",
    "create_graph_store",
    "create_blob_store",
]
