"""
Duplicate question check: cheap text-similarity heuristic over normalized question text.
Advisory only (drives a UI warning), so no embeddings.
"""
import re
from typing import Sequence

from quizbank.config import settings

_NON_WORD = re.compile(r"[^A-Za-z0-9_\s]")
_WHITESPACE = re.compile(r"\s+")

# Tokens this short are treated as stopword noise.
MIN_TOKEN_LENGTH = 3


def normalize(text: str) -> str:
    """Lowercase, drop everything but ASCII word characters and whitespace, collapse whitespace, trim."""
    if not text or not isinstance(text, str):
        return ""
    s = _NON_WORD.sub("", text.lower())
    return _WHITESPACE.sub(" ", s).strip()


def _tokens(normalized: str) -> list[str]:
    return [w for w in normalized.split(" ") if len(w) >= MIN_TOKEN_LENGTH]


def similarity(a: str, b: str) -> float:
    """
    Score in [0, 1]:
    equal after normalize -> 1; substring either way -> len(shorter) / len(longer);
    else max(shared / |union|, weighted_shared / (2 * |union|)) over tokens longer than 2 chars,
    where each shared token weighs max(1, len / 4).
    """
    t1 = normalize(a)
    t2 = normalize(b)
    if t1 == t2:
        return 1.0
    if t1 in t2 or t2 in t1:
        shorter, longer = (t1, t2) if len(t1) < len(t2) else (t2, t1)
        return len(shorter) / len(longer)

    words1 = _tokens(t1)
    words2 = _tokens(t2)
    if not words1 or not words2:
        return 0.0
    set1, set2 = set(words1), set(words2)
    union = list(dict.fromkeys(words1 + words2))
    matches = 0
    weighted = 0.0
    for word in union:
        if word in set1 and word in set2:
            matches += 1
            weighted += max(1.0, len(word) / 4)
    word_similarity = matches / len(union)
    weighted_similarity = weighted / (len(union) * 2)
    return max(word_similarity, weighted_similarity)


def find_similar(
    candidate: str,
    corpus: Sequence[dict],
    threshold: float | None = None,
    limit: int | None = None,
) -> list[dict]:
    """Corpus entries ({id, question}) scoring strictly above threshold, best first, at most limit."""
    threshold = settings.duplicate_threshold if threshold is None else threshold
    limit = settings.duplicate_max_matches if limit is None else limit
    scored = [
        {"id": str(entry["id"]), "question": entry["question"], "similarity": similarity(candidate, entry["question"])}
        for entry in corpus
    ]
    kept = [s for s in scored if s["similarity"] > threshold]
    kept.sort(key=lambda s: s["similarity"], reverse=True)
    return kept[:limit]


def find_duplicates(
    candidates: Sequence[str],
    corpus: Sequence[dict],
    threshold: float | None = None,
    limit: int | None = None,
) -> list[dict]:
    """
    One result per candidate, in input order:
    {"question_index", "is_duplicate", "similar_questions": [{id, question, similarity}, ...]}.
    """
    results = []
    for index, text in enumerate(candidates or []):
        similar = find_similar(text, corpus, threshold=threshold, limit=limit)
        results.append({
            "question_index": index,
            "is_duplicate": bool(similar),
            "similar_questions": similar,
        })
    return results
