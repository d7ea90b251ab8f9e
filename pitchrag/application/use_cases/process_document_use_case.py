import asyncio
import time
import structlog
from typing import Optional

from pitchrag.core.config import settings
from pitchrag.core.metrics import PROCESSING_DURATION_SECONDS
from pitchrag.domain.formats import classify_content_type
from pitchrag.domain.models import ProcessedDocument
from pitchrag.application.ports.extraction_port import ExtractionPort, UnsupportedFormatError, ExtractionError
from pitchrag.application.ports.chunking_port import ChunkingPort, ChunkingError

log = structlog.get_logger(__name__)

class ProcessDocumentUseCase:
    """Turns the bytes of one file into sanitized, size-bounded text chunks."""

    def __init__(
        self,
        extraction_port: ExtractionPort,
        chunking_port: ChunkingPort,
    ):
        self.extraction_port = extraction_port
        self.chunking_port = chunking_port
        self.log = log.bind(component="ProcessDocumentUseCase")

    async def execute(
        self,
        file_bytes: bytes,
        original_filename: str,
        content_type: str,
        chunk_size: Optional[int] = None,
        document_id_trace: Optional[str] = None,
    ) -> ProcessedDocument:
        start_time = time.perf_counter()
        document_format = classify_content_type(content_type)

        use_case_log = self.log.bind(
            original_filename=original_filename,
            content_type=content_type,
            document_format=document_format.value,
            document_id_trace=document_id_trace,
        )
        use_case_log.info("Starting document processing")

        effective_chunk_size = chunk_size if chunk_size is not None else settings.CHUNK_SIZE

        # Both steps are CPU-bound; keep them off the event loop
        try:
            raw_text, extraction_meta = await asyncio.to_thread(
                self.extraction_port.extract_text, file_bytes, original_filename, content_type
            )
        except UnsupportedFormatError as e:
            use_case_log.warning("Unsupported content type for extraction", error=str(e))
            raise
        except ExtractionError as e:
            use_case_log.error("Extraction failed", error=str(e))
            raise

        try:
            chunks = await asyncio.to_thread(self.chunking_port.chunk_text, raw_text, effective_chunk_size)
        except ChunkingError as e:
            use_case_log.error("Chunking failed", error=str(e))
            raise

        elapsed = time.perf_counter() - start_time
        PROCESSING_DURATION_SECONDS.labels(document_format=document_format.value).observe(elapsed)

        result = ProcessedDocument(
            original_filename=original_filename,
            content_type=content_type,
            document_format=document_format.value,
            raw_text=raw_text,
            chunks=chunks,
            extraction_metadata=extraction_meta,
            processing_time_ms=round(elapsed * 1000, 2),
        )
        use_case_log.info("Document processing finished",
                          num_chunks=len(chunks),
                          raw_text_length_chars=len(raw_text),
                          processing_time_ms=result.processing_time_ms)
        return result
