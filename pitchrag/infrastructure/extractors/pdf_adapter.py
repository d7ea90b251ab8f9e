import fitz  # PyMuPDF
import structlog
from typing import List, Tuple, Dict, Any

from pitchrag.infrastructure.extractors.base_extractor import BaseExtractorAdapter

log = structlog.get_logger(__name__)

class PdfAdapter(BaseExtractorAdapter):
    """Extracts the text layer of PDF files with PyMuPDF, one block per page."""

    PAGE_SEPARATOR = "\n\n"

    def extract_text(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: str
    ) -> Tuple[str, Dict[str, Any]]:
        log.debug("PdfAdapter: Extracting text from PDF bytes", filename=filename)
        pages_content: List[str] = []
        extraction_metadata: Dict[str, Any] = {"total_pages_extracted": 0, "total_pages_in_doc": 0}

        try:
            with fitz.open(stream=file_bytes, filetype="pdf") as doc:
                extraction_metadata["total_pages_in_doc"] = len(doc)
                for page_num_zero_based, page in enumerate(doc):
                    page_text = page.get_text("text")
                    if page_text and not page_text.isspace():
                        pages_content.append(page_text)
                    else:
                        log.debug("PdfAdapter: Skipping empty page", page=page_num_zero_based + 1)
        except Exception as e:
            raise self._handle_extraction_error(e, filename, "PdfAdapter") from e

        extraction_metadata["total_pages_extracted"] = len(pages_content)
        log.info(
            "PdfAdapter: PDF extraction successful",
            filename=filename,
            pages_with_text=len(pages_content),
            total_doc_pages=extraction_metadata["total_pages_in_doc"],
        )
        return self.PAGE_SEPARATOR.join(pages_content), extraction_metadata
