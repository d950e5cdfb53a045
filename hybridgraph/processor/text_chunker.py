from typing import List, Optional

from ..config import settings
from ..errors import ValidationError


class TextChunker:
    """Fixed-window text splitter.

    Windows are non-overlapping, keep the original order and together cover
    the whole input; the last window may be shorter. Sentence or paragraph
    boundaries are not considered.
    """

    def __init__(self, chunk_size: Optional[int] = None):
        self.chunk_size = settings.chunk_size if chunk_size is None else chunk_size
        if self.chunk_size < 1:
            raise ValidationError(f"chunk_size must be positive, got {self.chunk_size}")

    def split(self, text: str) -> List[str]:
        """Split text into ordered chunks of at most chunk_size characters."""
        if not text:
            return []
        return [text[start:start + self.chunk_size] for start in range(0, len(text), self.chunk_size)]
