"""API tests with the FastAPI TestClient and in-memory dependencies."""

import asyncio
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from pitchrag.application.ports.storage_port import StorageWriteError
from pitchrag.dependencies import (
    build_ingest_use_case,
    get_document_enqueuer,
    get_embedding_service,
    get_file_store,
    get_generation_service,
    get_storage,
)
from pitchrag.domain.models import DocumentStatus
from pitchrag.infrastructure.files.local_file_store import LocalFileStore
from pitchrag.main import app
from tests.fakes import FakeEmbeddingService, FakeGenerationService, InMemoryChunkStorage

API = "/api/v1"
PITCH = b"We help startups raise money. Our revenue grew 3x this year! Investors love the team."


class Harness:
    """Wires fakes into the app; ingestion runs inline when a document is queued."""

    def __init__(self, upload_dir):
        self.storage = InMemoryChunkStorage()
        self.file_store = LocalFileStore(upload_dir)
        self.embedding_service = FakeEmbeddingService()
        self.generation_service = FakeGenerationService()
        self.queued = []
        self.run_inline = True

    def enqueue(self, document_id: uuid.UUID) -> None:
        self.queued.append(document_id)
        if self.run_inline:
            use_case = build_ingest_use_case(self.storage, self.embedding_service, self.file_store)
            # The endpoint already runs inside an event loop
            with ThreadPoolExecutor(max_workers=1) as pool:
                pool.submit(asyncio.run, use_case.execute(document_id)).result()


@pytest.fixture
def harness(tmp_path):
    h = Harness(tmp_path)
    app.dependency_overrides[get_storage] = lambda: h.storage
    app.dependency_overrides[get_file_store] = lambda: h.file_store
    app.dependency_overrides[get_embedding_service] = lambda: h.embedding_service
    app.dependency_overrides[get_generation_service] = lambda: h.generation_service
    app.dependency_overrides[get_document_enqueuer] = lambda: h.enqueue
    yield h
    app.dependency_overrides.clear()


@pytest.fixture
def client(harness):
    # No context manager: the lifespan would connect to PostgreSQL
    return TestClient(app)


def upload(client, project_id, content=PITCH, filename="deck.txt", content_type="text/plain"):
    return client.post(
        f"{API}/projects/{project_id}/documents",
        files={"file": (filename, content, content_type)},
    )


class TestDocumentsApi:
    def test_upload_is_accepted_and_processed(self, client, harness):
        harness.run_inline = False
        project_id = uuid.uuid4()
        response = upload(client, project_id)

        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "processing"
        document_id = uuid.UUID(body["document_id"])
        assert harness.queued == [document_id]

        doc = client.get(f"{API}/documents/{document_id}").json()
        assert doc["status"] == "processing"
        assert doc["original_name"] == "deck.txt"
        assert doc["filename"].endswith("-deck.txt")

    def test_completed_document_exposes_chunks(self, client, harness):
        project_id = uuid.uuid4()
        document_id = upload(client, project_id).json()["document_id"]

        doc = client.get(f"{API}/documents/{document_id}").json()
        assert doc["status"] == DocumentStatus.COMPLETED.value
        assert doc["tokens"] > 0
        assert doc["page_count"] == 1

        chunks = client.get(f"{API}/documents/{document_id}/chunks").json()
        assert [c["chunk_index"] for c in chunks] == list(range(len(chunks)))
        assert all("embedding" not in c for c in chunks)
        assert sum(c["token_count"] for c in chunks) == doc["tokens"]

    def test_unsupported_type_is_415(self, client, harness):
        response = upload(client, uuid.uuid4(), content=b"\x89PNG", filename="logo.png", content_type="image/png")
        assert response.status_code == 415
        assert harness.queued == []

    def test_empty_file_is_422(self, client, harness):
        response = upload(client, uuid.uuid4(), content=b"")
        assert response.status_code == 422

    def test_oversized_file_is_413(self, client, harness, monkeypatch):
        from pitchrag.core.config import settings
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
        response = upload(client, uuid.uuid4(), content=b"x" * 11)
        assert response.status_code == 413

    def test_unknown_document_is_404(self, client, harness):
        assert client.get(f"{API}/documents/{uuid.uuid4()}").status_code == 404

    def test_delete_removes_document_chunks_and_file(self, client, harness, tmp_path):
        document_id = upload(client, uuid.uuid4()).json()["document_id"]
        stored_name = client.get(f"{API}/documents/{document_id}").json()["filename"]

        assert client.delete(f"{API}/documents/{document_id}").status_code == 204
        assert client.get(f"{API}/documents/{document_id}").status_code == 404
        assert harness.storage.chunks.get(uuid.UUID(document_id)) is None
        assert not (tmp_path / stored_name).exists()

    def test_reprocess_requeues(self, client, harness):
        document_id = upload(client, uuid.uuid4()).json()["document_id"]
        response = client.post(f"{API}/documents/{document_id}/reprocess")
        assert response.status_code == 202
        assert len(harness.queued) == 2
        assert client.get(f"{API}/documents/{document_id}").json()["status"] == "completed"

    def test_failed_document_record_removes_stored_file(self, client, harness, tmp_path, monkeypatch):
        async def failing_create(document):
            raise StorageWriteError("database unavailable")

        monkeypatch.setattr(harness.storage, "create_document", failing_create)
        response = upload(client, uuid.uuid4())

        assert response.status_code == 500
        assert list(tmp_path.iterdir()) == []
        assert harness.queued == []

    def test_failed_enqueue_marks_document_failed(self, client, harness):
        def broken_enqueue(document_id):
            raise ConnectionError("broker unreachable")

        app.dependency_overrides[get_document_enqueuer] = lambda: broken_enqueue
        response = upload(client, uuid.uuid4())

        assert response.status_code == 503
        [document] = harness.storage.documents.values()
        assert document.status == DocumentStatus.FAILED
        assert document.error_message == "Document could not be queued for processing"


class TestRetrievalApi:
    def test_retrieve_respects_budget(self, client, harness):
        project_id = uuid.uuid4()
        upload(client, project_id, content=PITCH * 20)

        response = client.post(
            f"{API}/projects/{project_id}/retrieve",
            json={"query": "How fast is revenue growing?", "token_budget": 100},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total_tokens"] <= 100
        assert body["total_tokens"] == sum(c["token_count"] for c in body["chunks"])

    def test_chat_returns_answer_and_tokens(self, client, harness):
        project_id = uuid.uuid4()
        upload(client, project_id)
        message = "What does the company do?"

        response = client.post(
            f"{API}/projects/{project_id}/chat",
            json={"message": message, "limit_tokens": 1000, "used_tokens": 0},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == harness.generation_service.answer
        assert len(body["context"]) >= 1
        assert body["tokens_consumed"] > 0
        assert body["remaining_tokens"] == 1000 - body["tokens_consumed"]

    def test_chat_with_exhausted_link_is_429(self, client, harness):
        response = client.post(
            f"{API}/projects/{uuid.uuid4()}/chat",
            json={"message": "Anything?", "limit_tokens": 100, "used_tokens": 100},
        )
        assert response.status_code == 429
        assert harness.generation_service.calls == []


def test_metrics_endpoint_is_mounted(client):
    assert client.get("/metrics/").status_code == 200
