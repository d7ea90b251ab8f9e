"""Common test fixtures."""

import uuid

import pytest

from pitchrag.application.retry_policy import RetryPolicy
from pitchrag.domain.models import Document
from tests.fakes import FakeEmbeddingService, FakeGenerationService, InMemoryChunkStorage


@pytest.fixture
def storage() -> InMemoryChunkStorage:
    return InMemoryChunkStorage()


@pytest.fixture
def embedding_service() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def generation_service() -> FakeGenerationService:
    return FakeGenerationService()


@pytest.fixture
def fast_retry_policy() -> RetryPolicy:
    """Retries without sleeping between attempts."""
    return RetryPolicy(max_attempts=3, multiplier=0, max_wait_seconds=0)


@pytest.fixture
def project_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def make_document(project_id):
    def _make(**overrides) -> Document:
        fields = {
            "project_id": project_id,
            "filename": "1700000000000-deck.txt",
            "original_name": "deck.txt",
            "file_size": 10,
            "mime_type": "text/plain",
        }
        fields.update(overrides)
        return Document(**fields)
    return _make
