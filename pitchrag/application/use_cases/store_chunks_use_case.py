import asyncio
import uuid
import structlog
from typing import Any, Dict, List, Optional

from pitchrag.core.config import settings
from pitchrag.core.metrics import CHUNKS_PERSISTED_TOTAL, PROCESSING_ERRORS_TOTAL
from pitchrag.domain.models import ChunkRecord, ChunkWriteOutcome, ChunkWriteResult, DocumentStatus
from pitchrag.application.ports.embedding_port import EmbeddingServiceError, EmbeddingServicePort, PermanentEmbeddingError
from pitchrag.application.ports.storage_port import ChunkStoragePort
from pitchrag.application.retry_policy import RetryPolicy

log = structlog.get_logger(__name__)

NO_CHUNKS_ERROR = "No extractable text found in document"


class StoreDocumentChunksUseCase:
    """
    Embeds a document's chunks and persists them all-or-nothing.

    Phase one computes every embedding and stages every row in memory.
    Phase two hands the staged rows to a single storage call that replaces
    the document's chunks atomically. Any failure removes whatever chunk
    rows the document has and marks it failed; nothing is raised to the
    caller, the outcome is reported in the returned `ChunkWriteResult`.
    """

    def __init__(
        self,
        storage: ChunkStoragePort,
        embedding_service: EmbeddingServicePort,
        retry_policy: Optional[RetryPolicy] = None,
        batch_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.storage = storage
        self.embedding_service = embedding_service
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.EMBEDDING_MAX_ATTEMPTS,
            multiplier=settings.EMBEDDING_BACKOFF_MULTIPLIER,
            max_wait_seconds=settings.EMBEDDING_BACKOFF_MAX_SECONDS,
        )
        self.batch_size = batch_size or settings.EMBEDDING_BATCH_SIZE
        self.max_concurrency = max_concurrency or settings.EMBEDDING_MAX_CONCURRENCY
        self.log = log.bind(component="StoreDocumentChunksUseCase")

    async def execute(
        self,
        document_id: uuid.UUID,
        chunks: List[str],
        page_count: Optional[int] = None,
        base_metadata: Optional[Dict[str, Any]] = None,
    ) -> ChunkWriteResult:
        write_log = self.log.bind(document_id=str(document_id), num_chunks=len(chunks))
        try:
            document = await self.storage.get_document(document_id)
            if document is None:
                write_log.warning("Document no longer exists, discarding chunks")
                return ChunkWriteResult(document_id=document_id, outcome=ChunkWriteOutcome.DISCARDED)
            if not chunks:
                return await self._fail(document_id, NO_CHUNKS_ERROR, stage="chunking")

            embeddings = await self._embed_all(chunks)

            metadata_base: Dict[str, Any] = {"filename": document.original_name}
            metadata_base.update(base_metadata or {})
            staged = [
                ChunkRecord(
                    document_id=document_id,
                    content=content,
                    embedding=embedding,
                    chunk_index=index,
                    metadata={**metadata_base, "chunk_index": index},
                )
                for index, (content, embedding) in enumerate(zip(chunks, embeddings))
            ]
            total_tokens = sum(c.token_count for c in staged)
            effective_page_count = page_count if page_count is not None else document.page_count

            committed = await self.storage.replace_chunks_for_document(document_id, staged)
            if not committed:
                write_log.warning("Document deleted while embedding, staged chunks discarded")
                return ChunkWriteResult(document_id=document_id, outcome=ChunkWriteOutcome.DISCARDED)
            CHUNKS_PERSISTED_TOTAL.inc(len(staged))

            updated = await self.storage.update_document_status(
                document_id,
                DocumentStatus.COMPLETED,
                tokens=total_tokens,
                page_count=effective_page_count,
            )
            if not updated:
                write_log.warning("Document deleted right after chunk commit")
                return ChunkWriteResult(document_id=document_id, outcome=ChunkWriteOutcome.DISCARDED)

            write_log.info("Chunks committed", tokens=total_tokens, page_count=effective_page_count)
            return ChunkWriteResult(
                document_id=document_id,
                outcome=ChunkWriteOutcome.COMMITTED,
                chunks_written=len(staged),
                tokens=total_tokens,
                page_count=effective_page_count,
            )
        except EmbeddingServiceError as e:
            write_log.error("Embedding failed", error=str(e), transient=e.transient)
            return await self._fail(document_id, f"Embedding failed: {e}", stage="embedding")
        except Exception as e:
            write_log.exception("Chunk write failed")
            return await self._fail(document_id, f"Storing chunks failed: {e}", stage="storage")

    async def _embed_all(self, chunks: List[str]) -> List[List[float]]:
        if not chunks:
            return []
        batches = [chunks[i:i + self.batch_size] for i in range(0, len(chunks), self.batch_size)]
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _embed_batch(batch: List[str]) -> List[List[float]]:
            async with semaphore:
                return await self.retry_policy.call(self.embedding_service.embed_batch, batch)

        tasks = [asyncio.create_task(_embed_batch(b)) for b in batches]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            # One failed batch fails the document, so the rest must not keep spending quota.
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        errors = [t.exception() for t in tasks if not t.cancelled() and t.exception() is not None]
        if errors:
            if pending:
                self.log.debug("Cancelled remaining embedding batches", cancelled=len(pending))
            raise errors[0]
        results = [t.result() for t in tasks]

        embeddings: List[List[float]] = []
        for batch, batch_embeddings in zip(batches, results):
            if len(batch_embeddings) != len(batch):
                raise PermanentEmbeddingError(
                    f"Embedding service returned {len(batch_embeddings)} vectors for {len(batch)} texts"
                )
            embeddings.extend(batch_embeddings)

        expected_dim = self.embedding_service.get_model_info().get("dimension")
        dims = {len(e) for e in embeddings}
        if len(dims) > 1 or (expected_dim and dims and dims != {expected_dim}):
            raise PermanentEmbeddingError(
                f"Embedding dimension mismatch: expected {expected_dim}, got {sorted(dims)}"
            )
        return embeddings

    async def _fail(self, document_id: uuid.UUID, error_message: str, stage: str) -> ChunkWriteResult:
        PROCESSING_ERRORS_TOTAL.labels(stage=stage).inc()
        fail_log = self.log.bind(document_id=str(document_id), stage=stage)
        try:
            await self.storage.delete_chunks_for_document(document_id)
            await self.storage.update_document_status(
                document_id, DocumentStatus.FAILED, error_message=error_message
            )
        except Exception as cleanup_err:
            fail_log.error("Could not record document failure", error=str(cleanup_err), exc_info=True)
        fail_log.warning("Document marked failed", error_message=error_message)
        return ChunkWriteResult(
            document_id=document_id,
            outcome=ChunkWriteOutcome.FAILED,
            error_message=error_message,
        )
