"""
Hybrid vector + graph retrieval over uploaded documents.
"""

__version__ = "1.0.0"
