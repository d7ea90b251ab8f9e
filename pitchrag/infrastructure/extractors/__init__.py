# File: pitchrag/infrastructure/extractors/__init__.py
from .base_extractor import BaseExtractorAdapter
from .pdf_adapter import PdfAdapter
from .docx_adapter import DocxAdapter
from .txt_adapter import TxtAdapter
from .excel_adapter import ExcelAdapter
from .composite_extractor_adapter import CompositeExtractorAdapter

__all__ = [
    "BaseExtractorAdapter",
    "PdfAdapter",
    "DocxAdapter",
    "TxtAdapter",
    "ExcelAdapter",
    "CompositeExtractorAdapter",
]
