import structlog
from typing import List, Optional
from openai import AsyncOpenAI, OpenAIError

from pitchrag.application.ports.generation_port import GenerationError, GenerationPort
from pitchrag.core.config import settings
from pitchrag.domain.models import ChunkRecord

log = structlog.get_logger(__name__)

SYSTEM_PROMPT_TEMPLATE = """You are an AI assistant helping investors understand a startup's pitch. Use the provided context to answer questions accurately. If the information isn't in the context, say so clearly.

Context from documents:
{context}

Guidelines:
- Answer based primarily on the provided context
- Be concise but comprehensive
- Include relevant citations when referencing specific information
- If asked about information not in the context, acknowledge the limitation
- Maintain a professional, investor-focused tone"""


def build_context_text(context_chunks: List[ChunkRecord]) -> str:
    return "\n\n".join(
        f"Source: {chunk.metadata.get('filename', 'document')}\nContent: {chunk.content}"
        for chunk in context_chunks
    )


class OpenAIChatAdapter(GenerationPort):
    """Answers investor questions with an OpenAI chat model."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model_name: Optional[str] = None):
        self._client = client
        self._model_name = model_name or settings.OPENAI_CHAT_MODEL_NAME

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY.get_secret_value() or None,
                base_url=settings.OPENAI_API_BASE,
                timeout=settings.OPENAI_TIMEOUT_SECONDS,
            )
        return self._client

    async def generate(self, context_chunks: List[ChunkRecord], user_message: str) -> str:
        gen_log = log.bind(adapter="OpenAIChatAdapter", model=self._model_name, num_context_chunks=len(context_chunks))
        system_prompt = SYSTEM_PROMPT_TEMPLATE.format(context=build_context_text(context_chunks))
        try:
            response = await self._get_client().chat.completions.create(
                model=self._model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                temperature=settings.GENERATION_TEMPERATURE,
                max_tokens=settings.GENERATION_MAX_TOKENS,
            )
        except OpenAIError as e:
            gen_log.error("OpenAI chat completion failed", error=str(e))
            raise GenerationError(f"Failed to generate AI response: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        gen_log.debug("Chat completion received", answer_length=len(content or ""))
        return content or ""
