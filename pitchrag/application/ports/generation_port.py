import abc
from typing import List

from pitchrag.domain.models import ChunkRecord


class GenerationError(Exception):
    """Raised when the answer generation service fails."""
    pass


class GenerationPort(abc.ABC):
    """
    Abstract port for the black-box chat completion service.
    """

    @abc.abstractmethod
    async def generate(self, context_chunks: List[ChunkRecord], user_message: str) -> str:
        """
        Answers `user_message` grounded on `context_chunks`.

        An empty context is valid; the answer is then ungrounded and
        should say so.
        """
        raise NotImplementedError
