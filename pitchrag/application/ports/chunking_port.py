from abc import ABC, abstractmethod
from typing import List

class ChunkingError(Exception):
    """Base exception for chunking errors."""
    pass

class ChunkingPort(ABC):
    """
    Interface (Port) for splitting text into bounded chunks.
    """

    @abstractmethod
    def chunk_text(
        self,
        text_content: str,
        max_chunk_size: int
    ) -> List[str]:
        """
        Splits a block of text into sanitized chunks.

        Args:
            text_content: The text to split. Need not be sanitized.
            max_chunk_size: Target maximum chunk length in characters.

        Returns:
            Ordered list of chunk strings.

        Raises:
            ChunkingError: If the parameters are invalid.
        """
        pass
