# File: pitchrag/dependencies.py
from typing import Optional

from fastapi import Request

from pitchrag.core.config import settings
from pitchrag.domain.formats import DocumentFormat
from pitchrag.application.ports.chunking_port import ChunkingPort
from pitchrag.application.ports.embedding_port import EmbeddingServicePort
from pitchrag.application.ports.extraction_port import ExtractionPort
from pitchrag.application.ports.generation_port import GenerationPort
from pitchrag.application.ports.storage_port import ChunkStoragePort
from pitchrag.application.retry_policy import RetryPolicy
from pitchrag.application.use_cases.answer_question_use_case import AnswerQuestionUseCase
from pitchrag.application.use_cases.ingest_document_use_case import IngestDocumentUseCase
from pitchrag.application.use_cases.process_document_use_case import ProcessDocumentUseCase
from pitchrag.application.use_cases.retrieve_context_use_case import RetrieveContextUseCase
from pitchrag.application.use_cases.store_chunks_use_case import StoreDocumentChunksUseCase
from pitchrag.infrastructure.chunkers.sentence_chunker_adapter import SentenceChunkerAdapter
from pitchrag.infrastructure.embedding.http_embedding_client import HttpEmbeddingServiceClient
from pitchrag.infrastructure.embedding.openai_adapter import OpenAIEmbeddingAdapter
from pitchrag.infrastructure.extractors import (
    CompositeExtractorAdapter,
    DocxAdapter,
    ExcelAdapter,
    PdfAdapter,
    TxtAdapter,
)
from pitchrag.infrastructure.files.local_file_store import LocalFileStore


def build_extractor() -> ExtractionPort:
    return CompositeExtractorAdapter(
        extractors={
            DocumentFormat.PLAIN_TEXT: TxtAdapter(),
            DocumentFormat.PDF: PdfAdapter(),
            DocumentFormat.SPREADSHEET: ExcelAdapter(),
            DocumentFormat.WORD_DOC: DocxAdapter(),
        }
    )


def build_embedding_service() -> EmbeddingServicePort:
    if settings.EMBEDDING_PROVIDER == "http":
        return HttpEmbeddingServiceClient()
    return OpenAIEmbeddingAdapter()


def build_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.EMBEDDING_MAX_ATTEMPTS,
        multiplier=settings.EMBEDDING_BACKOFF_MULTIPLIER,
        max_wait_seconds=settings.EMBEDDING_BACKOFF_MAX_SECONDS,
    )


def build_ingest_use_case(
    storage: ChunkStoragePort,
    embedding_service: EmbeddingServicePort,
    file_store: LocalFileStore,
    extractor: Optional[ExtractionPort] = None,
    chunker: Optional[ChunkingPort] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> IngestDocumentUseCase:
    process_use_case = ProcessDocumentUseCase(
        extraction_port=extractor or build_extractor(),
        chunking_port=chunker or SentenceChunkerAdapter(),
    )
    store_use_case = StoreDocumentChunksUseCase(
        storage=storage,
        embedding_service=embedding_service,
        retry_policy=retry_policy or build_retry_policy(),
    )
    return IngestDocumentUseCase(
        storage=storage,
        read_file=file_store.read,
        process_use_case=process_use_case,
        store_use_case=store_use_case,
    )


def build_answer_use_case(
    storage: ChunkStoragePort,
    embedding_service: EmbeddingServicePort,
    generation: GenerationPort,
) -> AnswerQuestionUseCase:
    return AnswerQuestionUseCase(
        retrieve_use_case=RetrieveContextUseCase(storage, embedding_service),
        generation=generation,
    )


# --- FastAPI dependencies (resolved from app.state, overridable in tests) ---

def get_storage(request: Request) -> ChunkStoragePort:
    return request.app.state.storage


def get_file_store(request: Request) -> LocalFileStore:
    return request.app.state.file_store


def get_embedding_service(request: Request) -> EmbeddingServicePort:
    return request.app.state.embedding_service


def get_generation_service(request: Request) -> GenerationPort:
    return request.app.state.generation_service


def get_document_enqueuer(request: Request):
    """Callable taking a document id and scheduling its ingestion."""
    return request.app.state.enqueue_ingestion
