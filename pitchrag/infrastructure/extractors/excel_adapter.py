import io
import pandas as pd
import structlog
from typing import List, Tuple, Dict, Any

from pitchrag.infrastructure.extractors.base_extractor import BaseExtractorAdapter

log = structlog.get_logger(__name__)

class ExcelAdapter(BaseExtractorAdapter):
    """Renders every sheet of a workbook as CSV under a '=== Sheet: <name> ===' header."""

    def extract_text(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: str
    ) -> Tuple[str, Dict[str, Any]]:
        log.debug("ExcelAdapter: Extracting text from Excel bytes", filename=filename, content_type=content_type)
        sheets_content: List[str] = []

        try:
            excel_file = pd.ExcelFile(io.BytesIO(file_bytes))
            sheet_names = [str(name) for name in excel_file.sheet_names]
            for sheet_name in excel_file.sheet_names:
                df = excel_file.parse(sheet_name, header=None)
                csv_text = df.to_csv(index=False, header=False)
                sheets_content.append(f"=== Sheet: {sheet_name} ===\n{csv_text}")
        except Exception as e:
            raise self._handle_extraction_error(e, filename, "ExcelAdapter") from e

        extraction_metadata: Dict[str, Any] = {
            "total_sheets_extracted": len(sheets_content),
            "sheet_names": sheet_names,
        }
        log.info("ExcelAdapter: Excel extraction successful", filename=filename, num_sheets=len(sheet_names))
        return "\n".join(sheets_content), extraction_metadata
