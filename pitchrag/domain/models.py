import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from pitchrag.domain.estimation import estimate_tokens


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Document(BaseModel):
    """An uploaded pitch document and its ingestion state."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    project_id: uuid.UUID
    filename: str = Field(..., description="Name of the file as stored on disk.")
    original_name: str = Field(..., description="Name of the file as uploaded.")
    file_size: int = Field(..., ge=0)
    mime_type: str
    status: DocumentStatus = DocumentStatus.PROCESSING
    tokens: int = Field(0, ge=0, description="Sum of the token counts of the document's chunks.")
    page_count: int = Field(0, ge=0)
    source: str = Field("upload", description="Provenance label, e.g. 'upload'.")
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ChunkRecord(BaseModel):
    """
    A persisted, embeddable slice of a document.

    `token_count` is derived from `content` and is never stored, so it
    always equals ceil(len(content) / 4).
    """
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    document_id: uuid.UUID
    content: str
    embedding: Optional[List[float]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    chunk_index: int = Field(..., ge=0)

    @computed_field  # type: ignore[misc]
    @property
    def token_count(self) -> int:
        return estimate_tokens(self.content)


class ChunkWriteOutcome(str, Enum):
    COMMITTED = "committed"
    FAILED = "failed"
    DISCARDED = "discarded"


class ChunkWriteResult(BaseModel):
    document_id: uuid.UUID
    outcome: ChunkWriteOutcome
    chunks_written: int = 0
    tokens: int = 0
    page_count: int = 0
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == ChunkWriteOutcome.COMMITTED


class ProcessedDocument(BaseModel):
    """Output of extraction plus chunking for one file."""
    original_filename: str
    content_type: str
    document_format: str
    raw_text: str = Field(..., description="Extracted text before sanitization.")
    chunks: List[str] = Field(default_factory=list)
    extraction_metadata: Dict[str, Any] = Field(default_factory=dict)
    processing_time_ms: float = 0.0


class IngestionResult(BaseModel):
    document_id: uuid.UUID
    status: DocumentStatus
    outcome: ChunkWriteOutcome
    chunks_written: int = 0
    tokens: int = 0
    page_count: int = 0
    error_message: Optional[str] = None


class TokenBudget(BaseModel):
    """Token allowance of a shared link or conversation."""
    limit_tokens: int = Field(1000, ge=0)
    used_tokens: int = Field(0, ge=0)

    @property
    def remaining(self) -> int:
        return max(self.limit_tokens - self.used_tokens, 0)


class ChatTurnResult(BaseModel):
    answer: str
    context: List[ChunkRecord] = Field(default_factory=list)
    tokens_consumed: int = 0
    remaining_tokens: int = 0
