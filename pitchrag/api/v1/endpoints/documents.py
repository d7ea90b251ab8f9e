# File: pitchrag/api/v1/endpoints/documents.py
import uuid
from typing import Callable, List

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from pitchrag.api.v1.schemas import ChunkResponse, DocumentResponse, UploadResponse
from pitchrag.application.ports.storage_port import ChunkStoragePort
from pitchrag.core.config import settings
from pitchrag.core.metrics import UPLOADS_TOTAL
from pitchrag.dependencies import get_document_enqueuer, get_file_store, get_storage
from pitchrag.domain.formats import DocumentFormat, classify_content_type, normalize_content_type
from pitchrag.domain.models import Document, DocumentStatus
from pitchrag.infrastructure.files.local_file_store import LocalFileStore

log = structlog.get_logger(__name__)
router = APIRouter()

QUEUE_ERROR = "Document could not be queued for processing"


async def _get_document_or_404(storage: ChunkStoragePort, document_id: uuid.UUID) -> Document:
    document = await storage.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return document


@router.post(
    "/projects/{project_id}/documents",
    response_model=UploadResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Upload a pitch document and queue it for ingestion.",
)
async def upload_document(
    project_id: uuid.UUID,
    file: UploadFile = File(...),
    storage: ChunkStoragePort = Depends(get_storage),
    file_store: LocalFileStore = Depends(get_file_store),
    enqueue_ingestion: Callable[[uuid.UUID], None] = Depends(get_document_enqueuer),
):
    content_type = normalize_content_type(file.content_type or "")
    endpoint_log = log.bind(project_id=str(project_id), filename=file.filename, content_type=content_type)
    endpoint_log.info("Document upload request received.")

    if (content_type not in settings.SUPPORTED_CONTENT_TYPES
            or classify_content_type(content_type) is DocumentFormat.UNSUPPORTED):
        UPLOADS_TOTAL.labels(content_type=content_type, status="error_client").inc()
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Unsupported file type")

    try:
        file_content = await file.read()
    finally:
        await file.close()

    if len(file_content) > settings.MAX_UPLOAD_BYTES:
        UPLOADS_TOTAL.labels(content_type=content_type, status="error_client").inc()
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")
    if not file_content:
        UPLOADS_TOTAL.labels(content_type=content_type, status="error_client").inc()
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Uploaded file is empty")

    original_name = file.filename or "document"
    stored_name = file_store.save(file_content, original_name)
    try:
        document = await storage.create_document(
            Document(
                project_id=project_id,
                filename=stored_name,
                original_name=original_name,
                file_size=len(file_content),
                mime_type=content_type,
                status=DocumentStatus.PROCESSING,
            )
        )
    except Exception:
        endpoint_log.exception("Could not record uploaded document, removing stored file", stored_name=stored_name)
        file_store.delete(stored_name)
        UPLOADS_TOTAL.labels(content_type=content_type, status="error_server").inc()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not store document")

    try:
        enqueue_ingestion(document.id)
    except Exception:
        endpoint_log.exception("Could not queue document for ingestion", document_id=str(document.id))
        await storage.update_document_status(
            document.id, DocumentStatus.FAILED, error_message=QUEUE_ERROR
        )
        UPLOADS_TOTAL.labels(content_type=content_type, status="error_server").inc()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=QUEUE_ERROR)

    UPLOADS_TOTAL.labels(content_type=content_type, status="success").inc()
    endpoint_log.info("Document stored and queued for ingestion.", document_id=str(document.id))

    return UploadResponse(
        document_id=document.id,
        status=DocumentStatus.PROCESSING,
        message="Document received and queued for processing.",
    )


@router.get("/documents/{document_id}", response_model=DocumentResponse)
async def get_document(document_id: uuid.UUID, storage: ChunkStoragePort = Depends(get_storage)):
    return DocumentResponse.from_domain(await _get_document_or_404(storage, document_id))


@router.get("/documents/{document_id}/chunks", response_model=List[ChunkResponse])
async def get_document_chunks(document_id: uuid.UUID, storage: ChunkStoragePort = Depends(get_storage)):
    await _get_document_or_404(storage, document_id)
    chunks = await storage.get_chunks_for_document(document_id)
    return [ChunkResponse.from_domain(c) for c in chunks]


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: uuid.UUID,
    storage: ChunkStoragePort = Depends(get_storage),
    file_store: LocalFileStore = Depends(get_file_store),
):
    document = await _get_document_or_404(storage, document_id)
    await storage.delete_document(document_id)
    file_store.delete(document.filename)
    log.info("Document deleted", document_id=str(document_id))


@router.post(
    "/documents/{document_id}/reprocess",
    response_model=UploadResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def reprocess_document(
    document_id: uuid.UUID,
    storage: ChunkStoragePort = Depends(get_storage),
    enqueue_ingestion: Callable[[uuid.UUID], None] = Depends(get_document_enqueuer),
):
    await _get_document_or_404(storage, document_id)
    await storage.update_document_status(document_id, DocumentStatus.PROCESSING)
    try:
        enqueue_ingestion(document_id)
    except Exception:
        log.exception("Could not queue document for reprocessing", document_id=str(document_id))
        await storage.update_document_status(document_id, DocumentStatus.FAILED, error_message=QUEUE_ERROR)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=QUEUE_ERROR)
    return UploadResponse(
        document_id=document_id,
        status=DocumentStatus.PROCESSING,
        message="Document queued for reprocessing.",
    )
