import re
import structlog
from typing import List

from pitchrag.application.ports.chunking_port import ChunkingPort, ChunkingError
from pitchrag.domain.text_cleaning import sanitize_text

log = structlog.get_logger(__name__)

_SENTENCE_TERMINATORS_RE = re.compile(r"[.!?]+")
SENTENCE_JOINER = ". "


def split_into_chunks(text: str, max_chunk_size: int) -> List[str]:
    """
    Splits text into chunks along sentence boundaries.

    Sentences are accumulated greedily, joined by ". ", while the running
    chunk plus the next sentence fits in `max_chunk_size` characters. A
    sentence that does not fit starts the next chunk whole, so a chunk may
    exceed the limit by up to one sentence. When a single sentence is too
    long for an empty chunk, its first `max_chunk_size` characters are
    emitted alone and the rest becomes the start of the next chunk.

    Raises:
        ChunkingError: If `max_chunk_size` is not positive.
    """
    if max_chunk_size <= 0:
        raise ChunkingError(f"Chunk size must be positive. Received: {max_chunk_size}")

    cleaned = sanitize_text(text)
    if not cleaned:
        return []

    chunks: List[str] = []

    def _emit(content: str) -> None:
        content = sanitize_text(content)
        if content:
            chunks.append(content)

    current = ""
    for fragment in _SENTENCE_TERMINATORS_RE.split(cleaned):
        sentence = fragment.strip()
        if not sentence:
            continue
        if len(current) + len(sentence) > max_chunk_size:
            if current:
                _emit(current)
                current = sentence
            else:
                _emit(sentence[:max_chunk_size])
                current = sentence[max_chunk_size:]
        else:
            current = f"{current}{SENTENCE_JOINER}{sentence}" if current else sentence

    if current.strip():
        _emit(current)
    return chunks


class SentenceChunkerAdapter(ChunkingPort):
    """
    Chunking adapter that keeps sentences whole wherever the size limit allows.
    """

    def chunk_text(
        self,
        text_content: str,
        max_chunk_size: int
    ) -> List[str]:
        if max_chunk_size <= 0:
            raise ChunkingError(f"Chunk size must be positive. Received: {max_chunk_size}")
        if not text_content or text_content.isspace():
            log.debug("SentenceChunkerAdapter: Empty or whitespace-only text provided, returning no chunks.")
            return []

        log.debug("SentenceChunkerAdapter: Splitting text into chunks",
                  text_length=len(text_content),
                  max_chunk_size=max_chunk_size)
        chunks = split_into_chunks(text_content, max_chunk_size)
        log.info("SentenceChunkerAdapter: Text split into chunks", num_chunks=len(chunks))
        return chunks
