from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

class ExtractionError(Exception):
    """Base exception for extraction errors."""
    pass

class UnsupportedFormatError(ExtractionError):
    """Raised when no extractor exists for a content type."""
    pass

class ExtractionPort(ABC):
    """
    Interface (Port) for turning raw file bytes into plain text.
    """

    @abstractmethod
    def extract_text(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: str
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Extracts text from the bytes of a file.

        Args:
            file_bytes: Raw file content.
            filename: Original filename (logging and metadata only).
            content_type: MIME type of the file.

        Returns:
            A tuple of the extracted, uncleaned text and a dictionary of
            extraction metadata (e.g. {'total_pages_extracted': 10}).

        Raises:
            UnsupportedFormatError: If the content type has no extractor.
            ExtractionError: If the underlying format library fails.
        """
        pass
