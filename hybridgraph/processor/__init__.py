"""
Document chunking and the ingestion pipeline.
"""

from .ingestion_pipeline import IngestionPipeline
from .text_chunker import TextChunker

__all__ = ['IngestionPipeline', 'TextChunker']
