from typing import Dict, Any, Tuple
import structlog

from pitchrag.application.ports.extraction_port import ExtractionPort, UnsupportedFormatError, ExtractionError
from pitchrag.domain.formats import DocumentFormat, classify_content_type
from .base_extractor import BaseExtractorAdapter

log = structlog.get_logger(__name__)

class CompositeExtractorAdapter(BaseExtractorAdapter):
    """
    Delegates extraction to the adapter registered for the file's format.
    """
    def __init__(self, extractors: Dict[DocumentFormat, ExtractionPort]):
        """
        Args:
            extractors: One extractor for every supported `DocumentFormat`.

        Raises:
            ValueError: If a supported format has no extractor, or an
                extractor is registered for `DocumentFormat.UNSUPPORTED`.
        """
        if DocumentFormat.UNSUPPORTED in extractors:
            raise ValueError("No extractor may be registered for DocumentFormat.UNSUPPORTED")
        missing = [f.value for f in DocumentFormat if f is not DocumentFormat.UNSUPPORTED and f not in extractors]
        if missing:
            raise ValueError(f"Missing extractors for formats: {missing}")

        self.extractors = dict(extractors)
        self.log = log.bind(component="CompositeExtractorAdapter")
        self.log.info("Initialized with supported formats", formats=[f.value for f in extractors])

    def extract_text(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: str
    ) -> Tuple[str, Dict[str, Any]]:
        document_format = classify_content_type(content_type)
        self.log.debug("Delegating extraction", filename=filename, content_type=content_type, document_format=document_format.value)

        if document_format is DocumentFormat.UNSUPPORTED:
            self.log.warning("Unsupported content type for extraction", content_type=content_type)
            raise UnsupportedFormatError(f"No extractor registered for content type: {content_type}")

        extractor = self.extractors[document_format]
        try:
            text, metadata = extractor.extract_text(file_bytes, filename, content_type)
        except ExtractionError:
            raise
        except Exception as e:
            raise self._handle_extraction_error(e, filename, f"CompositeAdapter -> {type(extractor).__name__}") from e

        metadata = dict(metadata)
        metadata["document_format"] = document_format.value
        return text, metadata
