import uuid
import structlog

from pitchrag.domain.estimation import estimate_tokens
from pitchrag.domain.models import ChatTurnResult, TokenBudget
from pitchrag.application.ports.generation_port import GenerationPort
from pitchrag.application.use_cases.retrieve_context_use_case import RetrieveContextUseCase

log = structlog.get_logger(__name__)


class AnswerQuestionUseCase:
    """One investor chat turn: retrieve within the remaining budget, then generate."""

    def __init__(self, retrieve_use_case: RetrieveContextUseCase, generation: GenerationPort):
        self.retrieve_use_case = retrieve_use_case
        self.generation = generation
        self.log = log.bind(component="AnswerQuestionUseCase")

    async def execute(self, project_id: uuid.UUID, message: str, budget: TokenBudget) -> ChatTurnResult:
        context = await self.retrieve_use_case.execute(project_id, message, budget.remaining)
        answer = await self.generation.generate(context, message)

        tokens_consumed = estimate_tokens(message) + estimate_tokens(answer)
        remaining = max(budget.remaining - tokens_consumed, 0)
        self.log.info(
            "Chat turn answered",
            project_id=str(project_id),
            num_context_chunks=len(context),
            tokens_consumed=tokens_consumed,
        )
        return ChatTurnResult(
            answer=answer,
            context=context,
            tokens_consumed=tokens_consumed,
            remaining_tokens=remaining,
        )
