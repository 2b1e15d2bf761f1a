"""
Edit-distance similarity

``similarity(a, b) = (max(len(a), len(b)) - levenshtein(a, b)) / max(len(a), len(b))``,
so two 10-character strings one edit apart score exactly 0.9.
"""

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character insertions, deletions and substitutions."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """Normalised similarity in [0, 1]. Two empty strings are identical."""
    if not a and not b:
        return 1.0
    return Levenshtein.normalized_similarity(a, b)
