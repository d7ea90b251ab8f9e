import time
import uuid
import structlog
from typing import List, Optional

from pitchrag.core.config import settings
from pitchrag.core.metrics import RETRIEVAL_DURATION_SECONDS
from pitchrag.domain.models import ChunkRecord
from pitchrag.domain.ranking import rank_chunks
from pitchrag.application.ports.embedding_port import EmbeddingServiceError, EmbeddingServicePort
from pitchrag.application.ports.storage_port import ChunkStoragePort

log = structlog.get_logger(__name__)


class RetrieveContextUseCase:
    """
    Finds the project chunks most relevant to a query within a token budget.

    Retrieval is read-only. If the query cannot be embedded the result is
    an empty context rather than an error.
    """

    def __init__(
        self,
        storage: ChunkStoragePort,
        embedding_service: EmbeddingServicePort,
        default_top_k: Optional[int] = None,
    ):
        self.storage = storage
        self.embedding_service = embedding_service
        self.default_top_k = default_top_k if default_top_k is not None else settings.RETRIEVAL_TOP_K
        self.log = log.bind(component="RetrieveContextUseCase")

    async def execute(
        self,
        project_id: uuid.UUID,
        query: str,
        token_budget: int,
        top_k: Optional[int] = None,
    ) -> List[ChunkRecord]:
        retrieve_log = self.log.bind(project_id=str(project_id), token_budget=token_budget)
        if token_budget <= 0 or not query.strip():
            return []

        start_time = time.perf_counter()
        try:
            query_embedding = await self.embedding_service.embed_query(query)
        except EmbeddingServiceError as e:
            retrieve_log.warning("Query embedding failed, continuing without context", error=str(e))
            return []

        candidates = await self.storage.get_chunks_for_project(project_id)
        selected = rank_chunks(
            query_embedding,
            candidates,
            token_budget,
            top_k=top_k if top_k is not None else self.default_top_k,
        )
        RETRIEVAL_DURATION_SECONDS.observe(time.perf_counter() - start_time)
        retrieve_log.info("Context retrieved", num_candidates=len(candidates), num_selected=len(selected))
        return selected
