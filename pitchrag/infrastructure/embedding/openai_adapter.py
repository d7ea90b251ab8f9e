# File: pitchrag/infrastructure/embedding/openai_adapter.py
import structlog
from typing import List, Dict, Any, Optional
import time
from openai import (
    AsyncOpenAI,
    APIConnectionError,
    APIStatusError,
    InternalServerError,
    OpenAIError,
    RateLimitError,
)

from pitchrag.application.ports.embedding_port import (
    EmbeddingServicePort,
    PermanentEmbeddingError,
    TransientEmbeddingError,
)
from pitchrag.core.config import settings
from pitchrag.core.metrics import EMBEDDING_ERRORS_TOTAL, EMBEDDING_REQUEST_DURATION_SECONDS

log = structlog.get_logger(__name__)

PROVIDER = "openai"


class OpenAIEmbeddingAdapter(EmbeddingServicePort):
    """
    Adapter for OpenAI's Embedding API.

    The SDK's own retries are disabled; retrying is the caller's
    `RetryPolicy`'s job, driven by the transient/permanent split below.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model_name: Optional[str] = None,
        dimension: Optional[int] = None,
    ):
        self._model_name = model_name or settings.OPENAI_EMBEDDING_MODEL_NAME
        self._embedding_dimension = dimension or settings.EMBEDDING_DIMENSION
        self._client = client
        log.info("OpenAIEmbeddingAdapter initialized", model_name=self._model_name, target_dimension=self._embedding_dimension)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            api_key = settings.OPENAI_API_KEY.get_secret_value()
            if not api_key:
                log.critical("OpenAI API Key is not configured.")
                raise PermanentEmbeddingError("OpenAI API Key is not configured.")
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=settings.OPENAI_API_BASE,
                timeout=settings.OPENAI_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            log.info("OpenAIEmbeddingAdapter client closed.")

    async def embed(self, text: str) -> List[float]:
        embeddings = await self.embed_batch([text])
        return embeddings[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        if any(not t or t.isspace() for t in texts):
            raise PermanentEmbeddingError("Cannot embed empty text.")

        embed_log = log.bind(adapter="OpenAIEmbeddingAdapter", num_texts=len(texts), model=self._model_name)
        embed_log.debug("Generating embeddings via OpenAI API...")
        client = self._get_client()
        start_time = time.perf_counter()

        try:
            response = await client.embeddings.create(
                model=self._model_name,
                input=texts,
                encoding_format="float",
            )
        except (RateLimitError, APIConnectionError, InternalServerError) as e:
            # APITimeoutError is a subclass of APIConnectionError
            error_type = type(e).__name__
            embed_log.warning("Transient OpenAI API error", error_type=error_type, error=str(e))
            EMBEDDING_ERRORS_TOTAL.labels(provider=PROVIDER, error_type=error_type).inc()
            raise TransientEmbeddingError(f"OpenAI embedding call failed: {e}") from e
        except APIStatusError as e:
            error_type = type(e).__name__
            embed_log.error("OpenAI API rejected embedding request", error_type=error_type, status_code=e.status_code)
            EMBEDDING_ERRORS_TOTAL.labels(provider=PROVIDER, error_type=error_type).inc()
            if e.status_code >= 500:
                raise TransientEmbeddingError(f"OpenAI embedding call failed: {e}", status_code=e.status_code) from e
            raise PermanentEmbeddingError(f"OpenAI rejected embedding request: {e}", status_code=e.status_code) from e
        except OpenAIError as e:
            embed_log.error("OpenAI API Error", error=str(e))
            EMBEDDING_ERRORS_TOTAL.labels(provider=PROVIDER, error_type=type(e).__name__).inc()
            raise PermanentEmbeddingError(f"OpenAI API error: {e}") from e
        finally:
            EMBEDDING_REQUEST_DURATION_SECONDS.labels(provider=PROVIDER).observe(time.perf_counter() - start_time)

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(texts) or not all(item.embedding for item in data):
            EMBEDDING_ERRORS_TOTAL.labels(provider=PROVIDER, error_type="invalid_response").inc()
            raise PermanentEmbeddingError(
                f"OpenAI returned {len(data)} embeddings for {len(texts)} texts."
            )
        return [list(item.embedding) for item in data]

    def get_model_info(self) -> Dict[str, Any]:
        return {"model_name": self._model_name, "dimension": self._embedding_dimension, "provider": PROVIDER}
