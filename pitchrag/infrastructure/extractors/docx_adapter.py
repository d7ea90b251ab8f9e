import io
import docx  # python-docx
import structlog
from typing import Tuple, Dict, Any, List

from pitchrag.infrastructure.extractors.base_extractor import BaseExtractorAdapter

log = structlog.get_logger(__name__)

class DocxAdapter(BaseExtractorAdapter):
    """Extracts paragraphs, then table rows, from Word documents."""

    def extract_text(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: str
    ) -> Tuple[str, Dict[str, Any]]:
        log.debug("DocxAdapter: Extracting text from DOCX bytes", filename=filename)
        try:
            doc = docx.Document(io.BytesIO(file_bytes))
            paragraphs = [p.text for p in doc.paragraphs if p.text and not p.text.isspace()]

            table_rows: List[str] = []
            for table in doc.tables:
                for row in table.rows:
                    cells = [cell.text.strip() for cell in row.cells]
                    if any(cells):
                        table_rows.append(" | ".join(cells))
        except Exception as e:
            # Legacy binary .doc files land here; python-docx only reads OOXML
            if "msword" in content_type.lower():
                log.warning("DocxAdapter: Legacy .doc files have limited support", filename=filename)
            raise self._handle_extraction_error(e, filename, "DocxAdapter") from e

        text = "\n".join(paragraphs + table_rows)
        extraction_metadata: Dict[str, Any] = {
            "num_paragraphs_extracted": len(paragraphs),
            "num_table_rows_extracted": len(table_rows),
        }
        log.info("DocxAdapter: DOCX extraction successful", filename=filename, **extraction_metadata)
        return text, extraction_metadata
