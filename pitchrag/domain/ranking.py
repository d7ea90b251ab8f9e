from typing import List, Optional, Sequence, Tuple

import numpy as np

from pitchrag.domain.models import ChunkRecord


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> Optional[float]:
    """Returns None when either vector has zero norm or the shapes differ."""
    if a.shape != b.shape:
        return None
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return None
    return float(np.dot(a, b) / (norm_a * norm_b))


def score_chunks(
    query_embedding: Sequence[float],
    candidate_chunks: Sequence[ChunkRecord],
) -> List[Tuple[ChunkRecord, float]]:
    """
    Scores every candidate against the query, most similar first.

    Chunks without an embedding, with a zero vector, or with a dimension
    different from the query's are left out. Ties keep their input order.
    """
    query = np.asarray(query_embedding, dtype=np.float64)
    if query.ndim != 1 or query.size == 0:
        return []

    scored: List[Tuple[ChunkRecord, float]] = []
    for chunk in candidate_chunks:
        if not chunk.embedding:
            continue
        score = cosine_similarity(query, np.asarray(chunk.embedding, dtype=np.float64))
        if score is None:
            continue
        scored.append((chunk, score))

    # sorted() is stable
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def rank_chunks(
    query_embedding: Sequence[float],
    candidate_chunks: Sequence[ChunkRecord],
    token_budget: int,
    top_k: Optional[int] = None,
) -> List[ChunkRecord]:
    """
    Selects the most relevant chunks whose token counts fit in `token_budget`.

    Selection walks the chunks in score order and stops at the first one
    that would overflow the budget; smaller chunks further down are not
    considered. The result is in relevance order.
    """
    if token_budget <= 0 or (top_k is not None and top_k <= 0):
        return []

    selected: List[ChunkRecord] = []
    used = 0
    for chunk, _score in score_chunks(query_embedding, candidate_chunks):
        if used + chunk.token_count > token_budget:
            break
        selected.append(chunk)
        used += chunk.token_count
        if top_k is not None and len(selected) >= top_k:
            break
    return selected
