# File: pitchrag/api/v1/endpoints/chat.py
import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from pitchrag.api.v1.schemas import ChatRequest, ChatResponse, ChunkResponse, RetrieveRequest, RetrieveResponse
from pitchrag.application.ports.embedding_port import EmbeddingServicePort
from pitchrag.application.ports.generation_port import GenerationError, GenerationPort
from pitchrag.application.ports.storage_port import ChunkStoragePort
from pitchrag.application.use_cases.retrieve_context_use_case import RetrieveContextUseCase
from pitchrag.dependencies import build_answer_use_case, get_embedding_service, get_generation_service, get_storage
from pitchrag.domain.models import TokenBudget

log = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/projects/{project_id}/retrieve", response_model=RetrieveResponse)
async def retrieve_context(
    project_id: uuid.UUID,
    body: RetrieveRequest,
    storage: ChunkStoragePort = Depends(get_storage),
    embedding_service: EmbeddingServicePort = Depends(get_embedding_service),
):
    use_case = RetrieveContextUseCase(storage, embedding_service)
    chunks = await use_case.execute(project_id, body.query, body.token_budget, top_k=body.top_k)
    return RetrieveResponse(
        chunks=[ChunkResponse.from_domain(c) for c in chunks],
        total_tokens=sum(c.token_count for c in chunks),
    )


@router.post("/projects/{project_id}/chat", response_model=ChatResponse)
async def chat(
    project_id: uuid.UUID,
    body: ChatRequest,
    storage: ChunkStoragePort = Depends(get_storage),
    embedding_service: EmbeddingServicePort = Depends(get_embedding_service),
    generation: GenerationPort = Depends(get_generation_service),
):
    budget = TokenBudget(limit_tokens=body.limit_tokens, used_tokens=body.used_tokens)
    if budget.remaining <= 0:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Token limit reached for this link")

    use_case = build_answer_use_case(storage, embedding_service, generation)
    try:
        result = await use_case.execute(project_id, body.message, budget)
    except GenerationError as e:
        log.error("Answer generation failed", project_id=str(project_id), error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to generate AI response")

    return ChatResponse(
        answer=result.answer,
        context=[ChunkResponse.from_domain(c) for c in result.context],
        tokens_consumed=result.tokens_consumed,
        remaining_tokens=result.remaining_tokens,
    )
