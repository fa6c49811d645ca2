"""Title normalization and edit-distance similarity for guess checking."""

import re

from .config import SIMILARITY_THRESHOLD

# Decorations stripped from titles before comparison, applied in this order.
PARENTHESIZED_PATTERN = re.compile(r" *\([^)]*\) *")
BRACKETED_PATTERN = re.compile(r" *\[[^\]]*\] *")
VERSION_SUFFIX_PATTERN = re.compile(r"\s-\s.*", re.DOTALL)
PUNCTUATION_PATTERN = re.compile(r"['\".,:]")


def _normalize_once(raw: str) -> str:
    cleaned = PARENTHESIZED_PATTERN.sub("", raw)
    cleaned = BRACKETED_PATTERN.sub("", cleaned)
    cleaned = VERSION_SUFFIX_PATTERN.sub("", cleaned, count=1)
    cleaned = PUNCTUATION_PATTERN.sub("", cleaned)
    return cleaned.strip().lower()


def normalize_title(raw: str) -> str:
    """Canonicalize a track title: drop annotations, punctuation, and case.

    "Song (feat. X) [Remix] - 2011 Remaster" becomes "song". A single pass can
    expose a new pattern (removing "." from "a -. b" yields "a - b"), so passes
    repeat until the text stops changing. Each pass only deletes characters or
    lowercases, so this terminates.
    """
    current = raw
    while True:
        cleaned = _normalize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost edit distance over a (len(b)+1) x (len(a)+1) table."""
    matrix = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
    for i in range(len(a) + 1):
        matrix[0][i] = i
    for j in range(len(b) + 1):
        matrix[j][0] = j

    for j in range(1, len(b) + 1):
        for i in range(1, len(a) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            matrix[j][i] = min(
                matrix[j][i - 1] + 1,
                matrix[j - 1][i] + 1,
                matrix[j - 1][i - 1] + cost,
            )

    return matrix[len(b)][len(a)]


def similarity(a: str, b: str) -> float:
    """Return similarity percentage in [0, 100]; two empty strings are identical."""
    max_length = max(len(a), len(b))
    if max_length == 0:
        return 100.0
    distance = levenshtein_distance(a, b)
    return (1 - distance / max_length) * 100


def is_correct_guess(expected_title: str, guess: str) -> bool:
    return similarity(normalize_title(expected_title), normalize_title(guess)) >= SIMILARITY_THRESHOLD
