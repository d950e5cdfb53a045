"""
Cosine similarity index and k-nearest-neighbour graph construction.
"""

from .graph_builder import GraphBuilder
from .similarity import SimilarityIndex, cosine_similarity

__all__ = [
    'GraphBuilder',
    'SimilarityIndex',
    'cosine_similarity'
]
