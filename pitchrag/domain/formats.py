from enum import Enum


class DocumentFormat(str, Enum):
    PLAIN_TEXT = "plain_text"
    PDF = "pdf"
    SPREADSHEET = "spreadsheet"
    WORD_DOC = "word_doc"
    UNSUPPORTED = "unsupported"


def normalize_content_type(content_type: str) -> str:
    """Lowercases a MIME type and strips parameters such as '; charset=utf-8'."""
    return (content_type or "").split(";")[0].strip().lower()


def classify_content_type(content_type: str) -> DocumentFormat:
    """
    Maps a MIME type onto the format family that knows how to read it.

    Order matters: presentation types are rejected before the generic
    'document' check, since 'presentationml.document'-style names would
    otherwise be read as Word files.
    """
    mime = normalize_content_type(content_type)
    if mime in ("text/plain", "text/markdown"):
        return DocumentFormat.PLAIN_TEXT
    if mime == "application/pdf":
        return DocumentFormat.PDF
    if "spreadsheet" in mime or "excel" in mime:
        return DocumentFormat.SPREADSHEET
    if "presentation" in mime or "powerpoint" in mime:
        return DocumentFormat.UNSUPPORTED
    if "word" in mime or "document" in mime:
        return DocumentFormat.WORD_DOC
    return DocumentFormat.UNSUPPORTED
