# File: pitchrag/infrastructure/embedding/http_embedding_client.py
from typing import List, Dict, Any, Optional
import time
import httpx
import structlog

from pitchrag.application.ports.embedding_port import (
    EmbeddingServicePort,
    PermanentEmbeddingError,
    TransientEmbeddingError,
)
from pitchrag.core.config import settings
from pitchrag.core.metrics import EMBEDDING_ERRORS_TOTAL, EMBEDDING_REQUEST_DURATION_SECONDS

log = structlog.get_logger(__name__)

PROVIDER = "http"


class HttpEmbeddingServiceClient(EmbeddingServicePort):
    """
    Client for a remote embedding service exposing
    POST {"texts": [...], "text_type": ...} -> {"embeddings": [...], "model_info": {...}}.
    """

    def __init__(
        self,
        service_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        text_type: str = "passage",
    ):
        self.service_url = service_url or str(settings.EMBEDDING_SERVICE_URL)
        self.text_type = text_type
        self.client = client or httpx.AsyncClient(timeout=settings.HTTP_CLIENT_TIMEOUT)
        self._model_info: Dict[str, Any] = {
            "model_name": "unknown",
            "dimension": settings.EMBEDDING_DIMENSION,
            "provider": PROVIDER,
        }
        self.log = log.bind(service_client="HttpEmbeddingServiceClient", service_url=self.service_url)

    async def close(self):
        await self.client.aclose()
        self.log.info("Embedding service client closed.")

    async def embed(self, text: str) -> List[float]:
        embeddings = await self.embed_batch([text])
        return embeddings[0]

    async def embed_query(self, text: str) -> List[float]:
        embeddings = await self._post_texts([text], text_type="query")
        return embeddings[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Sends a list of texts to the embedding service and returns their embeddings.

        Raises:
            TransientEmbeddingError: Network errors, timeouts, 429 and 5xx responses.
            PermanentEmbeddingError: Other 4xx responses, empty input texts or a
                response that does not carry one embedding per text.
        """
        return await self._post_texts(texts, text_type=self.text_type)

    async def _post_texts(self, texts: List[str], text_type: str) -> List[List[float]]:
        if not texts:
            return []
        if any(not t or t.isspace() for t in texts):
            raise PermanentEmbeddingError("Cannot embed empty text.")

        request_payload = {"texts": texts, "text_type": text_type}
        self.log.debug(f"Requesting embeddings for {len(texts)} texts", num_texts=len(texts), text_type=text_type)
        start_time = time.perf_counter()

        try:
            response = await self.client.post(self.service_url, json=request_payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            self.log.error("HTTP error from embedding service", status_code=status_code, response_text=e.response.text)
            EMBEDDING_ERRORS_TOTAL.labels(provider=PROVIDER, error_type=f"http_{status_code}").inc()
            if status_code == 429 or status_code >= 500:
                raise TransientEmbeddingError(
                    f"Embedding service returned error: {status_code}", status_code=status_code, detail=e.response.text
                ) from e
            raise PermanentEmbeddingError(
                f"Embedding service returned error: {status_code}", status_code=status_code, detail=e.response.text
            ) from e
        except httpx.RequestError as e:
            self.log.error("Request error calling embedding service", error=str(e))
            EMBEDDING_ERRORS_TOTAL.labels(provider=PROVIDER, error_type=type(e).__name__).inc()
            raise TransientEmbeddingError(f"Request to embedding service failed: {type(e).__name__}", detail=str(e)) from e
        finally:
            EMBEDDING_REQUEST_DURATION_SECONDS.labels(provider=PROVIDER).observe(time.perf_counter() - start_time)

        try:
            response_data = response.json()
        except ValueError as e:
            raise PermanentEmbeddingError("Embedding service returned invalid JSON.", status_code=response.status_code) from e

        embeddings = response_data.get("embeddings") if isinstance(response_data, dict) else None
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            self.log.error("Invalid response format from embedding service", response_keys=list(response_data or {}))
            EMBEDDING_ERRORS_TOTAL.labels(provider=PROVIDER, error_type="invalid_response").inc()
            raise PermanentEmbeddingError(
                "Invalid response format from embedding service.",
                status_code=response.status_code,
                detail=response_data,
            )

        model_info = response_data.get("model_info")
        if isinstance(model_info, dict):
            self._model_info.update(model_info)
            self._model_info["provider"] = PROVIDER
        self.log.info(f"Successfully retrieved {len(embeddings)} embeddings.", model_name=self._model_info.get("model_name"))
        return embeddings

    def get_model_info(self) -> Dict[str, Any]:
        return dict(self._model_info)
