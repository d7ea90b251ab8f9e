import structlog
from typing import Tuple, Dict, Any

from pitchrag.infrastructure.extractors.base_extractor import BaseExtractorAdapter

log = structlog.get_logger(__name__)

class TxtAdapter(BaseExtractorAdapter):
    """
    Reads plain text and markdown files as UTF-8.

    Bytes that are not valid UTF-8 are replaced with U+FFFD instead of
    failing the document, so a Latin-1 or cp1252 upload still yields its
    readable text.
    """

    def extract_text(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: str
    ) -> Tuple[str, Dict[str, Any]]:
        log.debug("TxtAdapter: Decoding text bytes", filename=filename, size=len(file_bytes))
        metadata: Dict[str, Any] = {"encoding_used": "utf-8", "decode_errors": False}
        try:
            text = file_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            log.warning("TxtAdapter: invalid UTF-8, decoding with replacement characters",
                        filename=filename, position=e.start, reason=e.reason)
            text = file_bytes.decode("utf-8", errors="replace")
            metadata["decode_errors"] = True

        log.info("TxtAdapter: text extraction successful", filename=filename, length=len(text))
        return text, metadata
