from abc import ABC, abstractmethod
from typing import Dict
from pathlib import Path
import threading

from ..errors import NotFoundError, UpstreamError, ValidationError
from ..utils.logger import app_logger


class BlobStore(ABC):
    """Raw uploaded file content addressed by path."""

    @abstractmethod
    def upload(self, path: str, data: bytes) -> str:
        ...

    @abstractmethod
    def download(self, path: str) -> bytes:
        ...

    @abstractmethod
    def delete(self, path: str) -> bool:
        ...


class InMemoryBlobStore(BlobStore):
    def __init__(self):
        self._blobs: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def upload(self, path: str, data: bytes) -> str:
        with self._lock:
            self._blobs[path] = bytes(data)
        return path

    def download(self, path: str) -> bytes:
        with self._lock:
            if path not in self._blobs:
                raise NotFoundError(f"Blob not found: {path}")
            return self._blobs[path]

    def delete(self, path: str) -> bool:
        with self._lock:
            return self._blobs.pop(path, None) is not None


class LocalBlobStore(BlobStore):
    """Blob store rooted at a local directory."""

    def __init__(self, root: str = "data/uploads"):
        self.logger = app_logger.bind(component="local_blob_store")
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise ValidationError(f"Blob path escapes storage root: {path}")
        return target

    def upload(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            self.logger.error(f"Error writing blob {path}: {e}")
            raise UpstreamError(f"Could not store blob {path}: {e}") from e
        self.logger.debug(f"Stored blob {path} ({len(data)} bytes)")
        return path

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundError(f"Blob not found: {path}")
        try:
            return target.read_bytes()
        except OSError as e:
            self.logger.error(f"Error reading blob {path}: {e}")
            raise UpstreamError(f"Could not read blob {path}: {e}") from e

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        target.unlink()
        return True
