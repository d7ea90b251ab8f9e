"""Tests for the embedding retry policy."""

import pytest

from pitchrag.application.ports.embedding_port import PermanentEmbeddingError, TransientEmbeddingError
from pitchrag.application.retry_policy import RetryPolicy


class FlakyCall:
    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self, *args, **kwargs):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestRetryPolicy:
    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self, fast_retry_policy):
        call = FlakyCall([TransientEmbeddingError("503"), TransientEmbeddingError("timeout")])
        assert await fast_retry_policy.call(call, ["text"]) == "ok"
        assert call.calls == 3

    @pytest.mark.asyncio
    async def test_permanent_errors_are_not_retried(self, fast_retry_policy):
        call = FlakyCall([PermanentEmbeddingError("empty text")])
        with pytest.raises(PermanentEmbeddingError):
            await fast_retry_policy.call(call)
        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, fast_retry_policy):
        call = FlakyCall([TransientEmbeddingError(str(i)) for i in range(5)])
        with pytest.raises(TransientEmbeddingError):
            await fast_retry_policy.call(call)
        assert call.calls == 3

    @pytest.mark.asyncio
    async def test_no_retry_policy_makes_one_attempt(self):
        call = FlakyCall([TransientEmbeddingError("429")])
        with pytest.raises(TransientEmbeddingError):
            await RetryPolicy.no_retry().call(call)
        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_passes_arguments_through(self, fast_retry_policy):
        async def echo(a, b=None):
            return (a, b)

        assert await fast_retry_policy.call(echo, 1, b=2) == (1, 2)
