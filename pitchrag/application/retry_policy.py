from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar

import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from pitchrag.application.ports.embedding_port import TransientEmbeddingError

log = structlog.get_logger(__name__)

T = TypeVar("T")


def _log_before_sleep(retry_state: RetryCallState) -> None:
    log.warning(
        "Retrying embedding call",
        attempt_number=retry_state.attempt_number,
        wait_time=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else "Unknown error",
    )


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential backoff for calls to the embedding provider.

    Only the exception types in `retry_on` are retried; anything else, and
    the last failure once attempts run out, propagates unchanged.
    """
    max_attempts: int = 3
    multiplier: float = 0.5
    max_wait_seconds: float = 8.0
    retry_on: Tuple[Type[BaseException], ...] = field(default=(TransientEmbeddingError,))

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.multiplier, max=self.max_wait_seconds),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=_log_before_sleep,
            reraise=True,
        )

    async def call(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        async for attempt in self._retrying():
            with attempt:
                result = await fn(*args, **kwargs)
        return result

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_attempts=1)
