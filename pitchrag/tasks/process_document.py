# pitchrag/tasks/process_document.py
import asyncio
import uuid
from typing import Any, Dict

import structlog
from celery import Task
from celery.signals import worker_process_init

from pitchrag.core.logging_config import setup_logging
from pitchrag.db.postgres_client import PostgresChunkStorage, create_engine_from_settings
from pitchrag.dependencies import build_embedding_service, build_ingest_use_case
from pitchrag.infrastructure.files.local_file_store import LocalFileStore
from pitchrag.tasks.celery_app import celery_app

task_log = structlog.get_logger(__name__)


@worker_process_init.connect(weak=False)
def init_worker_logging(**kwargs):
    setup_logging()
    task_log.info("Worker process initialized", signal="worker_process_init")


async def run_ingestion(document_id: uuid.UUID) -> Dict[str, Any]:
    """
    Ingests one document with resources scoped to this call.

    Each task invocation runs its own event loop, so the async engine is
    created here and disposed before returning, along with the embedding
    client.
    """
    engine = create_engine_from_settings()
    embedding_service = build_embedding_service()
    try:
        use_case = build_ingest_use_case(
            storage=PostgresChunkStorage(engine),
            embedding_service=embedding_service,
            file_store=LocalFileStore(),
        )
        result = await use_case.execute(document_id)
        return result.model_dump(mode="json")
    finally:
        await embedding_service.close()
        await engine.dispose()


@celery_app.task(
    bind=True,
    name="pitchrag.process_document",
    acks_late=True,
)
def process_document(self: Task, document_id: str) -> Dict[str, Any]:
    structlog.contextvars.bind_contextvars(task_id=str(self.request.id), document_id=document_id)
    try:
        task_log.info("Processing document task started")
        result = asyncio.run(run_ingestion(uuid.UUID(document_id)))
        task_log.info("Processing document task finished", outcome=result.get("outcome"))
        return result
    finally:
        structlog.contextvars.clear_contextvars()
