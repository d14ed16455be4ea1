"""Deterministic fuzzy answer matching. Pure functions, no I/O."""

import re
import unicodedata

# Fuzzy matching only applies to reference answers of at most this many words.
FUZZY_MAX_WORDS = 2
SIMILARITY_THRESHOLD = 0.8
_MIN_CONTAINMENT_LEN = 3

_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lowercase, drop every character that is not a letter, digit or space, collapse spaces.

    Works across scripts: Cyrillic, Greek, CJK letters survive, punctuation of any
    script does not. Composed to NFC first so a decomposed accent stays on its letter. Idempotent.
    """
    composed = unicodedata.normalize("NFC", text).lower()
    kept = "".join(ch for ch in composed if ch.isalnum() or ch.isspace())
    return _WHITESPACE.sub(" ", kept).strip()


def levenshtein(a: str, b: str) -> int:
    """Minimum number of single-character inserts, deletes and substitutions."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """1 - distance / longer length; 0.0 when both are empty."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return 1 - levenshtein(a, b) / longest


def validate(team_answer: str, correct_answer: str) -> bool:
    """Decide whether a free-text team answer matches the reference answer.

    Exact match on normalized text, then a bounded containment check, then a
    Levenshtein similarity fallback for short (one- or two-word) references.
    """
    if not team_answer or not correct_answer:
        return False
    if not team_answer.strip() or not correct_answer.strip():
        return False

    candidate = normalize(team_answer)
    reference = normalize(correct_answer)
    if not candidate or not reference:
        return False

    if candidate == reference:
        return True

    # Short generic words ("the", "a") must not match everything.
    min_len = max(_MIN_CONTAINMENT_LEN, len(reference) // 2)
    if len(candidate) >= min_len and (candidate in reference or reference in candidate):
        return True

    if len(reference.split(" ")) <= FUZZY_MAX_WORDS:
        return similarity(candidate, reference) >= SIMILARITY_THRESHOLD

    return False
