# File: pitchrag/core/metrics.py
from prometheus_client import Counter, Histogram

UPLOADS_TOTAL = Counter(
    "pitchrag_uploads_total",
    "Total number of document upload attempts.",
    ["content_type", "status"]
)

DOCUMENTS_PROCESSED_TOTAL = Counter(
    "pitchrag_documents_processed_total",
    "Total number of documents that finished ingestion.",
    ["status"]
)

PROCESSING_DURATION_SECONDS = Histogram(
    "pitchrag_processing_duration_seconds",
    "Time taken to extract and chunk a single document.",
    ["document_format"],
    buckets=[0.1, 0.5, 1, 2, 5, 10, 30, 60]
)

PROCESSING_ERRORS_TOTAL = Counter(
    "pitchrag_processing_errors_total",
    "Total number of errors during ingestion.",
    ["stage"]
)

CHUNKS_PERSISTED_TOTAL = Counter(
    "pitchrag_chunks_persisted_total",
    "Total number of chunk rows committed to storage."
)

EMBEDDING_REQUEST_DURATION_SECONDS = Histogram(
    "pitchrag_embedding_request_duration_seconds",
    "Duration of calls to the embedding provider.",
    ["provider"]
)

EMBEDDING_ERRORS_TOTAL = Counter(
    "pitchrag_embedding_errors_total",
    "Total number of errors returned by the embedding provider.",
    ["provider", "error_type"]
)

RETRIEVAL_DURATION_SECONDS = Histogram(
    "pitchrag_retrieval_duration_seconds",
    "Time taken to embed a query and rank the project's chunks.",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5]
)

REQUEST_PROCESSING_DURATION_SECONDS = Histogram(
    "pitchrag_request_processing_duration_seconds",
    "Time taken to process HTTP requests.",
    ["method", "path"]
)
