"""
Hybrid query engine and label resolution.
"""

from .hybrid_search import HybridSearch

__all__ = ['HybridSearch']
