"""
Embedding providers behind a single embed(text) capability.
"""

from .embedding_service import EmbeddingService, HashEmbeddingProvider, OllamaEmbeddingProvider

__all__ = ['EmbeddingService', 'HashEmbeddingProvider', 'OllamaEmbeddingProvider']
