"""Bag-of-words tokenization and cosine scoring for the in-process index."""
import math
import re
from collections import Counter
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)
MIN_TOKEN_LENGTH = 3


class ScoredCandidate(NamedTuple):
    """Position of a stored vector and its similarity to the query."""
    index: int
    score: float


def tokenize(text: Optional[str]) -> List[str]:
    """Lower-case, strip punctuation, split on whitespace and drop tokens of two characters or fewer."""
    if not text:
        return []
    cleaned = _NON_WORD.sub(" ", text.lower())
    return [token for token in cleaned.split() if len(token) >= MIN_TOKEN_LENGTH]


def vectorize(tokens: Iterable[str]) -> Counter:
    """Term frequency map for a token sequence."""
    return Counter(tokens)


def cosine_similarity(vec_a: Dict[str, int], vec_b: Dict[str, int]) -> float:
    """
    Cosine similarity of two sparse frequency vectors.

    Returns 0.0 when either vector has zero norm.
    """
    dot_product = 0
    norm_a = 0
    norm_b = 0
    for word in set(vec_a) | set(vec_b):
        a = vec_a.get(word, 0)
        b = vec_b.get(word, 0)
        dot_product += a * b
        norm_a += a * a
        norm_b += b * b

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot_product / (math.sqrt(norm_a) * math.sqrt(norm_b))


def rank_top_k(query_vector: Dict[str, int], vectors: Sequence[Dict[str, int]], k: int) -> List[ScoredCandidate]:
    """
    Score every vector against the query and keep the best ``k``.

    The sort is stable, so equal scores keep insertion order. Candidates
    scoring zero are dropped after the cut, which means fewer than ``k``
    results (possibly none) can come back.
    """
    scores = [ScoredCandidate(i, cosine_similarity(query_vector, vector)) for i, vector in enumerate(vectors)]
    ranked = sorted(scores, key=lambda candidate: candidate.score, reverse=True)
    return [candidate for candidate in ranked[:max(k, 0)] if candidate.score > 0]
