"""Tests for the file extraction adapters."""

import io

import docx
import fitz
import pandas as pd
import pytest

from pitchrag.application.ports.extraction_port import ExtractionError, UnsupportedFormatError
from pitchrag.dependencies import build_extractor
from pitchrag.domain.formats import DocumentFormat
from pitchrag.infrastructure.extractors import (
    CompositeExtractorAdapter,
    DocxAdapter,
    ExcelAdapter,
    PdfAdapter,
    TxtAdapter,
)

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def make_pdf(pages):
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def make_docx():
    document = docx.Document()
    document.add_paragraph("Our mission is to simplify B2B payments.")
    document.add_paragraph("   ")
    document.add_paragraph("We raised a seed round in 2023.")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Metric"
    table.cell(0, 1).text = "Value"
    table.cell(1, 0).text = "ARR"
    table.cell(1, 1).text = "1.2M"
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def make_xlsx():
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame({"Metric": ["Revenue", "Burn"], "Value": [100, 40]}).to_excel(
            writer, sheet_name="Financials", index=False
        )
        pd.DataFrame({"Name": ["Sarah"], "Role": ["CEO"]}).to_excel(writer, sheet_name="Team", index=False)
    return buffer.getvalue()


class TestTxtAdapter:
    def test_decodes_utf8(self):
        text, meta = TxtAdapter().extract_text("Café pitch".encode("utf-8"), "deck.txt", "text/plain")
        assert text == "Café pitch"
        assert meta["encoding_used"] == "utf-8"

    def test_invalid_utf8_keeps_readable_text(self):
        text, meta = TxtAdapter().extract_text(
            "Caf\xe9 revenue grew.".encode("latin-1"), "deck.txt", "text/plain"
        )
        assert text == "Caf\ufffd revenue grew."
        assert meta["decode_errors"] is True

    def test_valid_utf8_reports_no_decode_errors(self):
        _, meta = TxtAdapter().extract_text(b"Clean pitch.", "deck.txt", "text/plain")
        assert meta["decode_errors"] is False

    def test_does_not_clean(self):
        text, _ = TxtAdapter().extract_text(b"a\x01\n\nb", "deck.md", "text/markdown")
        assert text == "a\x01\n\nb"


class TestPdfAdapter:
    def test_extracts_pages_in_order(self):
        data = make_pdf(["Revenue grew 40 percent.", "", "Team of twelve engineers."])
        text, meta = PdfAdapter().extract_text(data, "deck.pdf", "application/pdf")
        assert "Revenue grew 40 percent." in text
        assert "Team of twelve engineers." in text
        assert text.index("Revenue") < text.index("Team")
        assert meta["total_pages_in_doc"] == 3
        assert meta["total_pages_extracted"] == 2

    def test_corrupt_pdf_is_extraction_error(self):
        with pytest.raises(ExtractionError):
            PdfAdapter().extract_text(b"definitely not a pdf", "broken.pdf", "application/pdf")


class TestDocxAdapter:
    def test_extracts_paragraphs_then_tables(self):
        text, meta = DocxAdapter().extract_text(make_docx(), "deck.docx", DOCX_TYPE)
        lines = text.split("\n")
        assert lines[0] == "Our mission is to simplify B2B payments."
        assert lines[1] == "We raised a seed round in 2023."
        assert "Metric | Value" in lines
        assert "ARR | 1.2M" in lines
        assert meta["num_paragraphs_extracted"] == 2
        assert meta["num_table_rows_extracted"] == 2

    def test_corrupt_docx_is_extraction_error(self):
        with pytest.raises(ExtractionError):
            DocxAdapter().extract_text(b"PK not really a zip", "broken.docx", DOCX_TYPE)


class TestExcelAdapter:
    def test_every_sheet_rendered_as_csv(self):
        text, meta = ExcelAdapter().extract_text(make_xlsx(), "model.xlsx", XLSX_TYPE)
        assert "=== Sheet: Financials ===" in text
        assert "=== Sheet: Team ===" in text
        assert "Revenue,100" in text
        assert "Sarah,CEO" in text
        assert text.index("Financials") < text.index("Team")
        assert meta["sheet_names"] == ["Financials", "Team"]

    def test_corrupt_workbook_is_extraction_error(self):
        with pytest.raises(ExtractionError):
            ExcelAdapter().extract_text(b"garbage", "model.xlsx", XLSX_TYPE)


class TestCompositeExtractorAdapter:
    def test_dispatches_by_format(self):
        extractor = build_extractor()
        text, meta = extractor.extract_text(b"Plain pitch", "deck.txt", "text/plain; charset=utf-8")
        assert text == "Plain pitch"
        assert meta["document_format"] == DocumentFormat.PLAIN_TEXT.value

    def test_dispatches_pdf(self):
        text, meta = build_extractor().extract_text(make_pdf(["Hello investors."]), "d.pdf", "application/pdf")
        assert "Hello investors." in text
        assert meta["document_format"] == "pdf"

    @pytest.mark.parametrize(
        "content_type",
        ["image/png", "application/vnd.ms-powerpoint", "application/zip"],
    )
    def test_unsupported_types(self, content_type):
        with pytest.raises(UnsupportedFormatError):
            build_extractor().extract_text(b"data", "file.bin", content_type)

    def test_unsupported_is_an_extraction_error(self):
        assert issubclass(UnsupportedFormatError, ExtractionError)

    def test_mapping_must_cover_every_format(self):
        with pytest.raises(ValueError):
            CompositeExtractorAdapter({DocumentFormat.PDF: PdfAdapter()})

    def test_unsupported_cannot_be_mapped(self):
        extractors = {
            DocumentFormat.PLAIN_TEXT: TxtAdapter(),
            DocumentFormat.PDF: PdfAdapter(),
            DocumentFormat.SPREADSHEET: ExcelAdapter(),
            DocumentFormat.WORD_DOC: DocxAdapter(),
            DocumentFormat.UNSUPPORTED: TxtAdapter(),
        }
        with pytest.raises(ValueError):
            CompositeExtractorAdapter(extractors)

    def test_unexpected_adapter_error_is_wrapped(self):
        class Exploding(TxtAdapter):
            def extract_text(self, file_bytes, filename, content_type):
                raise RuntimeError("boom")

        extractor = CompositeExtractorAdapter({
            DocumentFormat.PLAIN_TEXT: Exploding(),
            DocumentFormat.PDF: PdfAdapter(),
            DocumentFormat.SPREADSHEET: ExcelAdapter(),
            DocumentFormat.WORD_DOC: DocxAdapter(),
        })
        with pytest.raises(ExtractionError):
            extractor.extract_text(b"x", "a.txt", "text/plain")
