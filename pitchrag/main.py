# File: pitchrag/main.py
import time
import uuid
import structlog
from contextlib import asynccontextmanager

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from prometheus_client import make_asgi_app

from pitchrag.core.logging_config import setup_logging
setup_logging()

from pitchrag.core.config import settings
from pitchrag.core.metrics import REQUEST_PROCESSING_DURATION_SECONDS
from pitchrag.api.v1.endpoints import chat, documents
from pitchrag.db.postgres_client import PostgresChunkStorage, check_db_connection, create_engine_from_settings, create_schema
from pitchrag.dependencies import build_embedding_service
from pitchrag.infrastructure.files.local_file_store import LocalFileStore
from pitchrag.infrastructure.generation.openai_chat_adapter import OpenAIChatAdapter

log = structlog.get_logger(__name__)


def enqueue_ingestion(document_id: uuid.UUID) -> None:
    from pitchrag.tasks.process_document import process_document
    process_document.delay(str(document_id))


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("PitchRAG startup sequence initiated...")
    engine = create_engine_from_settings()
    await create_schema(engine)
    app.state.engine = engine
    app.state.storage = PostgresChunkStorage(engine)
    app.state.file_store = LocalFileStore()
    app.state.embedding_service = build_embedding_service()
    app.state.generation_service = OpenAIChatAdapter()
    app.state.enqueue_ingestion = enqueue_ingestion
    log.info("Dependencies initialized.", embedding_provider=settings.EMBEDDING_PROVIDER)
    yield
    log.info("PitchRAG shutdown sequence initiated...")
    await app.state.embedding_service.close()
    await engine.dispose()
    log.info("Shutdown sequence complete.")


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    version="0.1.0",
    description="Pitch document ingestion and retrieval service.",
    lifespan=lifespan,
)

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.middleware("http")
async def add_request_context_and_metrics(request: Request, call_next):
    start_time = time.perf_counter()
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))

    if request.url.path.startswith("/metrics"):
        return await call_next(request)

    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("request_id")

    process_time = time.perf_counter() - start_time
    route = request.scope.get("route")
    path_label = getattr(route, "path", request.url.path)
    REQUEST_PROCESSING_DURATION_SECONDS.labels(method=request.method, path=path_label).observe(process_time)
    response.headers["X-Request-ID"] = request_id

    log.info("Request processed", method=request.method, path=request.url.path, status_code=response.status_code, duration_ms=round(process_time * 1000, 2))
    return response


app.include_router(documents.router, prefix=settings.API_V1_STR, tags=["Documents"])
app.include_router(chat.router, prefix=settings.API_V1_STR, tags=["Retrieval"])


@app.get("/health", tags=["Health Check"])
async def health_check(request: Request):
    engine = getattr(request.app.state, "engine", None)
    db_ok = await check_db_connection(engine) if engine is not None else False
    return {"status": "healthy" if db_ok else "degraded", "database": "ok" if db_ok else "unavailable"}
