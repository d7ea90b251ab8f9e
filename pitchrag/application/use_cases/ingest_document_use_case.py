import uuid
import structlog
from typing import Callable

from pitchrag.core.metrics import DOCUMENTS_PROCESSED_TOTAL, PROCESSING_ERRORS_TOTAL
from pitchrag.domain.estimation import estimate_page_count
from pitchrag.domain.models import ChunkWriteOutcome, DocumentStatus, IngestionResult
from pitchrag.application.ports.extraction_port import ExtractionError, UnsupportedFormatError
from pitchrag.application.ports.chunking_port import ChunkingError
from pitchrag.application.ports.storage_port import ChunkStoragePort
from pitchrag.application.use_cases.process_document_use_case import ProcessDocumentUseCase
from pitchrag.application.use_cases.store_chunks_use_case import NO_CHUNKS_ERROR, StoreDocumentChunksUseCase

log = structlog.get_logger(__name__)


class IngestDocumentUseCase:
    """
    Full ingestion of one stored upload: read, extract, chunk, embed, persist.

    Failures end at the document: it is marked failed with a reason and
    the result says so. Nothing is raised for per-document problems.
    """

    def __init__(
        self,
        storage: ChunkStoragePort,
        read_file: Callable[[str], bytes],
        process_use_case: ProcessDocumentUseCase,
        store_use_case: StoreDocumentChunksUseCase,
    ):
        self.storage = storage
        self.read_file = read_file
        self.process_use_case = process_use_case
        self.store_use_case = store_use_case
        self.log = log.bind(component="IngestDocumentUseCase")

    async def execute(self, document_id: uuid.UUID) -> IngestionResult:
        ingest_log = self.log.bind(document_id=str(document_id))
        document = await self.storage.get_document(document_id)
        if document is None:
            ingest_log.warning("Document not found, nothing to ingest")
            DOCUMENTS_PROCESSED_TOTAL.labels(status="discarded").inc()
            return IngestionResult(
                document_id=document_id,
                status=DocumentStatus.FAILED,
                outcome=ChunkWriteOutcome.DISCARDED,
                error_message="Document not found",
            )

        ingest_log = ingest_log.bind(project_id=str(document.project_id), original_name=document.original_name)
        await self.storage.update_document_status(document_id, DocumentStatus.PROCESSING)

        try:
            file_bytes = self.read_file(document.filename)
        except OSError as e:
            return await self._fail(document_id, f"Stored file could not be read: {e}", stage="file_read")

        try:
            processed = await self.process_use_case.execute(
                file_bytes=file_bytes,
                original_filename=document.original_name,
                content_type=document.mime_type,
                document_id_trace=str(document_id),
            )
        except UnsupportedFormatError as e:
            return await self._fail(document_id, f"Unsupported file type: {e}", stage="extraction")
        except ExtractionError as e:
            return await self._fail(document_id, f"Could not read file: {e}", stage="extraction")
        except ChunkingError as e:
            return await self._fail(document_id, f"Chunking failed: {e}", stage="chunking")

        if not processed.chunks:
            return await self._fail(document_id, NO_CHUNKS_ERROR, stage="chunking")

        page_count = estimate_page_count(processed.raw_text)
        write_result = await self.store_use_case.execute(
            document_id,
            processed.chunks,
            page_count=page_count,
            base_metadata={"document_format": processed.document_format},
        )

        status = DocumentStatus.COMPLETED if write_result.succeeded else DocumentStatus.FAILED
        DOCUMENTS_PROCESSED_TOTAL.labels(status=write_result.outcome.value).inc()
        ingest_log.info("Ingestion finished", outcome=write_result.outcome.value, chunks_written=write_result.chunks_written)
        return IngestionResult(
            document_id=document_id,
            status=status,
            outcome=write_result.outcome,
            chunks_written=write_result.chunks_written,
            tokens=write_result.tokens,
            page_count=write_result.page_count,
            error_message=write_result.error_message,
        )

    async def _fail(self, document_id: uuid.UUID, error_message: str, stage: str) -> IngestionResult:
        PROCESSING_ERRORS_TOTAL.labels(stage=stage).inc()
        DOCUMENTS_PROCESSED_TOTAL.labels(status=ChunkWriteOutcome.FAILED.value).inc()
        self.log.warning("Ingestion failed", document_id=str(document_id), stage=stage, error_message=error_message)
        await self.storage.update_document_status(document_id, DocumentStatus.FAILED, error_message=error_message)
        return IngestionResult(
            document_id=document_id,
            status=DocumentStatus.FAILED,
            outcome=ChunkWriteOutcome.FAILED,
            error_message=error_message,
        )
