import abc
from typing import Any, Dict, List, Optional


class EmbeddingServiceError(Exception):
    """Base exception for embedding provider failures."""

    transient: bool = False

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class TransientEmbeddingError(EmbeddingServiceError):
    """Network, timeout, rate-limit or 5xx failures. Safe to retry."""

    transient = True


class PermanentEmbeddingError(EmbeddingServiceError):
    """Malformed request, bad credentials or an unusable response. Never retried."""

    transient = False


class EmbeddingServicePort(abc.ABC):
    """
    Abstract port defining the interface for an embedding provider.
    """

    @abc.abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Generates the embedding of a single text.

        Raises:
            TransientEmbeddingError: On retryable provider failures.
            PermanentEmbeddingError: On malformed input (e.g. empty text).
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generates embeddings for a list of texts, preserving order.

        Raises:
            TransientEmbeddingError: On retryable provider failures.
            PermanentEmbeddingError: On malformed input or mismatched output.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def get_model_info(self) -> Dict[str, Any]:
        """
        Returns information about the embedding model (model_name, dimension, provider).
        """
        raise NotImplementedError

    async def embed_query(self, text: str) -> List[float]:
        """
        Embeds a search query. Providers that encode queries and passages
        differently override this; the default is `embed`.
        """
        return await self.embed(text)

    async def close(self) -> None:
        """Releases network clients held by the provider."""
        return None
