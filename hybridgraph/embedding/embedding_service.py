from typing import List, Optional
from concurrent.futures import ThreadPoolExecutor
import math
import struct
import requests

from ..config import settings
from ..errors import HybridGraphError, UpstreamError
from ..utils.logger import app_logger


FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
DIMENSION_SALT = 0x9E3779B9
MASK_32 = 0xFFFFFFFF


def _utf16_code_units(text: str) -> tuple:
    """Return the UTF-16 code units of text (surrogate pairs stay split)."""
    data = text.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def _l2_normalize(values) -> List[float]:
    """Divide by the Euclidean norm, summing squares strictly in index order."""
    values = [float(v) for v in values]
    total = 0.0
    for v in values:
        total += v * v
    norm = math.sqrt(total) or 1.0
    return [v / norm for v in values]


class HashEmbeddingProvider:
    """Deterministic hash-based embedding provider.

    The text is folded into a 32-bit FNV-1a seed, every dimension scrambles
    the seed with an xorshift sequence, and the vector is L2-normalised.
    Equal texts always give equal vectors; no semantic closeness is implied.
    """

    def __init__(self, dimension: int = 768):
        self.dimension = dimension
        self.logger = app_logger.bind(component="hash_embedding")

    @staticmethod
    def fold_seed(text: str) -> int:
        seed = FNV_OFFSET_BASIS
        for unit in _utf16_code_units(text):
            seed = ((seed ^ unit) * FNV_PRIME) & MASK_32
        return seed

    def embed(self, text: str) -> List[float]:
        """Generate embedding for a single text."""
        seed = self.fold_seed(text)
        return _l2_normalize([self.dimension_value(seed, i) for i in range(self.dimension)])

    @staticmethod
    def dimension_value(seed: int, index: int) -> float:
        """Pre-normalisation value in [-1, 1) of one dimension."""
        s = seed ^ ((index + DIMENSION_SALT) & MASK_32)
        s = (s ^ (s << 13)) & MASK_32
        s = s ^ (s >> 17)
        s = (s ^ (s << 5)) & MASK_32
        return (s % 10000) / 10000 * 2 - 1

    def get_dimension(self) -> int:
        """Get the dimension of embeddings."""
        return self.dimension


class OllamaEmbeddingProvider:
    """Ollama embedding provider."""

    def __init__(self, host: str = "http://localhost:11434", model: str = "nomic-embed-text",
                 dimension: int = 768, timeout: float = 30.0):
        self.host = host
        self.model = model
        self.dimension = dimension
        self.timeout = timeout
        self.logger = app_logger.bind(component="ollama_embedding")
        self.session = requests.Session()

    def embed(self, text: str) -> List[float]:
        """Generate embedding for a single text using Ollama."""
        try:
            response = self.session.post(
                f"{self.host}/api/embeddings",
                json={
                    "model": self.model,
                    "prompt": text
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            embedding = response.json()["embedding"]
        except (requests.RequestException, KeyError, ValueError) as e:
            self.logger.error(f"Error generating Ollama embedding: {e}")
            raise UpstreamError(f"Ollama embedding failed: {e}") from e

        if len(embedding) != self.dimension:
            raise UpstreamError(
                f"Ollama model {self.model} returned {len(embedding)} dimensions, expected {self.dimension}"
            )
        return _l2_normalize(embedding)

    def get_dimension(self) -> int:
        """Get the dimension of embeddings."""
        return self.dimension


class EmbeddingService:
    """Single embedding capability shared by ingestion and search."""

    def __init__(self, provider=None, max_workers: Optional[int] = None):
        self.logger = app_logger.bind(component="embedding_service")
        self.provider = provider or self._initialize_provider()
        self.dimension = self.provider.get_dimension()
        self.max_workers = max_workers or settings.max_workers

    def _initialize_provider(self):
        """Initialize the embedding provider based on configuration."""
        if settings.embedding_provider == "hash":
            return HashEmbeddingProvider(dimension=settings.embedding_dimension)
        elif settings.embedding_provider == "ollama":
            return OllamaEmbeddingProvider(
                host=settings.ollama_host,
                model=settings.ollama_model,
                dimension=settings.embedding_dimension,
                timeout=settings.ollama_timeout,
            )
        else:
            raise ValueError(f"Unsupported embedding provider: {settings.embedding_provider}")

    def embed_text(self, text: str) -> List[float]:
        """Generate embedding for a single text."""
        try:
            return self.provider.embed(text)
        except HybridGraphError:
            raise
        except Exception as e:
            self.logger.error(f"Error generating embedding: {e}")
            raise UpstreamError(f"Embedding failed: {e}") from e

    def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts, preserving input order.

        The pool overlaps I/O-bound providers such as Ollama; the pure-Python
        hash provider holds the GIL and gains no speedup from it.
        """
        if not texts:
            return []
        if len(texts) == 1 or self.max_workers <= 1:
            return [self.embed_text(text) for text in texts]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self.embed_text, texts))

    def embed_query(self, query: str) -> List[float]:
        """Generate embedding for a search query."""
        return self.embed_text(query)

    def get_dimension(self) -> int:
        """Get the dimension of embeddings."""
        return self.dimension
