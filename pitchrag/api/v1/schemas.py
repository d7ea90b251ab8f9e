# File: pitchrag/api/v1/schemas.py
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from pitchrag.core.config import settings
from pitchrag.domain.models import ChunkRecord, Document, DocumentStatus


class ErrorDetail(BaseModel):
    """Schema for error details in responses."""
    detail: str


class DocumentResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    filename: str
    original_name: str
    file_size: int
    mime_type: str
    status: DocumentStatus
    tokens: int
    page_count: int
    source: str
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, document: Document) -> "DocumentResponse":
        return cls(**document.model_dump())


class UploadResponse(BaseModel):
    document_id: uuid.UUID
    status: DocumentStatus = Field(description="Always 'processing'; ingestion continues in the background.")
    message: str

    class Config:
        json_schema_extra = {
            "example": {
                "document_id": "123e4567-e89b-12d3-a456-426614174000",
                "status": "processing",
                "message": "Document received and queued for processing."
            }
        }


class ChunkResponse(BaseModel):
    """A stored chunk without its embedding vector."""
    id: uuid.UUID
    document_id: uuid.UUID
    chunk_index: int
    content: str
    token_count: int
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, chunk: ChunkRecord) -> "ChunkResponse":
        return cls(
            id=chunk.id,
            document_id=chunk.document_id,
            chunk_index=chunk.chunk_index,
            content=chunk.content,
            token_count=chunk.token_count,
            metadata=chunk.metadata,
        )


class RetrieveRequest(BaseModel):
    query: str = Field(..., min_length=1)
    token_budget: int = Field(settings.DEFAULT_LINK_TOKEN_LIMIT, ge=0)
    top_k: Optional[int] = Field(None, gt=0)


class RetrieveResponse(BaseModel):
    chunks: List[ChunkResponse]
    total_tokens: int


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    limit_tokens: int = Field(settings.DEFAULT_LINK_TOKEN_LIMIT, ge=0, description="Token limit of the share link.")
    used_tokens: int = Field(0, ge=0, description="Tokens already consumed through the share link.")


class ChatResponse(BaseModel):
    answer: str
    context: List[ChunkResponse]
    tokens_consumed: int
    remaining_tokens: int
