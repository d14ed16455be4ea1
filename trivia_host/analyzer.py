"""Discussion analysis: guesses, topics and confidence from free-text notes.

Two sources feed the same shaping step (_finalize):
  - local heuristics (hedge phrases, word counts), always available;
  - the semantic oracle, when configured. Any oracle failure falls back to
    the local path, so analyze() always returns a complete AnalysisResult.

Difficulty classification lives here too: oracle first, length heuristics
as the fallback.
"""

import logging
import re
from collections import Counter

from trivia_host.errors import AnalysisParseError
from trivia_host.models import AnalysisResult, Difficulty, SpeakerContribution
from trivia_host.oracle import SemanticOracle

logger = logging.getLogger(__name__)

HEDGE_MARKERS = ("i think", "maybe", "could be", "answer is", "perhaps", "what if", "possibly")

MAX_GUESSES = 3
MAX_TOPICS = 5
MIN_GUESS_LEN = 3
MAX_GUESS_LEN = 100
LONG_NOTES_LEN = 100

_BASE_CONFIDENCE = 0.3
_GUESS_BONUS = 0.3
_MENTION_BONUS = 0.4
_LENGTH_BONUS = 0.1

STOP_WORDS = frozenset({
    "the", "and", "for", "with", "that", "this", "from", "have", "what", "they",
    "were", "been", "which", "would", "could", "about", "there", "their", "just",
    "like", "think", "maybe", "perhaps", "possibly", "answer",
})

_SENTENCE_BOUNDARY = re.compile(r"[.!?\n]+")
_MARKER = re.compile(r"\b(?:" + "|".join(re.escape(m) for m in HEDGE_MARKERS) + r")\b", re.IGNORECASE)
_LEADING_FILLER = re.compile(r"^(?:it's|it’s|it is|that's|that it's)\s+", re.IGNORECASE)
_CLAUSE_BREAK = re.compile(r"[,;:]")
_WORD = re.compile(r"\w+")
_SPEAKER_LINE = re.compile(r"^\s*([^:\n]{1,40}):\s*(.+)$")


def _clean_guess(fragment: str) -> str:
    guess = _CLAUSE_BREAK.split(fragment, maxsplit=1)[0].strip()
    guess = _LEADING_FILLER.sub("", guess)
    return guess.strip(" \"'«»“”")


def _bound_guesses(candidates: list[str]) -> list[str]:
    """Trim, drop too short/long entries, dedupe case-insensitively, keep the first three."""
    kept: list[str] = []
    seen: set[str] = set()
    for raw in candidates:
        guess = str(raw).strip()
        if not MIN_GUESS_LEN <= len(guess) <= MAX_GUESS_LEN:
            continue
        key = guess.lower()
        if key in seen:
            continue
        seen.add(key)
        kept.append(guess)
        if len(kept) == MAX_GUESSES:
            break
    return kept


def extract_guesses(text: str) -> list[str]:
    """Collect the text following each hedge phrase, up to the end of its sentence."""
    candidates: list[str] = []
    for sentence in _SENTENCE_BOUNDARY.split(text):
        for match in _MARKER.finditer(sentence):
            candidates.append(_clean_guess(sentence[match.end():]))
    return _bound_guesses(candidates)


def extract_key_topics(text: str) -> list[str]:
    """Top five words longer than three characters, by count; ties keep first-seen order."""
    words = [w for w in _WORD.findall(text.lower()) if len(w) > 3 and w not in STOP_WORDS]
    counts = Counter(words)
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [word for word, _ in ranked[:MAX_TOPICS]]


def mentions_answer(text: str, correct_answer: str) -> bool:
    answer = correct_answer.strip().lower()
    return bool(answer) and answer in text.lower()


def heuristic_confidence(has_guesses: bool, mentioned: bool, notes_length: int) -> float:
    confidence = _BASE_CONFIDENCE
    if has_guesses:
        confidence += _GUESS_BONUS
    if mentioned:
        confidence += _MENTION_BONUS
    if notes_length > LONG_NOTES_LEN:
        confidence += _LENGTH_BONUS
    return round(min(1.0, confidence), 2)


def _analysis_text(mentioned: bool, guesses: list[str]) -> str:
    if mentioned:
        return "Great discussion! The team mentioned the correct answer during their deliberation."
    if guesses:
        return (
            f"The team explored several possibilities: {', '.join(guesses)}. "
            "Consider the reasoning behind each guess."
        )
    return "The team discussion shows they are working through the problem. Encourage more specific reasoning."


def _suggestions(question: str) -> list[str]:
    words = set(_WORD.findall(question.lower()))
    suggestions = ["Break down the question into key components"]
    if words & {"when", "date", "year"}:
        suggestions.append("Consider historical context and timelines")
    if words & {"where", "location", "country", "city"}:
        suggestions.append("Think about geographical relationships")
    if words & {"who", "person"}:
        suggestions.append("Consider the person's field and time period")
    suggestions.append("Discuss what you know about the topic")
    suggestions.append("Eliminate obviously incorrect options")
    return suggestions


def _speaker_contributions(transcript: str, correct_answer: str) -> dict[str, SpeakerContribution]:
    """Per-speaker word counts from "Name: text" transcript lines."""
    lines_by_speaker: dict[str, list[str]] = {}
    for line in transcript.splitlines():
        match = _SPEAKER_LINE.match(line)
        if match:
            lines_by_speaker.setdefault(match.group(1).strip(), []).append(match.group(2))

    contributions: dict[str, SpeakerContribution] = {}
    for speaker, lines in lines_by_speaker.items():
        spoken = "\n".join(lines)
        points = extract_guesses(spoken)
        contributions[speaker] = SpeakerContribution(
            word_count=len(spoken.split()),
            key_points=tuple(points),
            confidence=heuristic_confidence(bool(points), mentions_answer(spoken, correct_answer), 0),
        )
    return contributions


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _finalize(
    mentioned: bool,
    guesses: list[str],
    confidence: float,
    analysis: str,
    suggestions: list[str],
    topics: list[str],
    speakers: dict[str, SpeakerContribution],
    source: str,
) -> AnalysisResult:
    return AnalysisResult(
        correct_answer_mentioned=mentioned,
        best_guesses=tuple(_bound_guesses(guesses)),
        confidence=_clamp(confidence),
        analysis=analysis,
        suggestions=tuple(str(s) for s in suggestions),
        key_topics=tuple(str(t) for t in topics[:MAX_TOPICS]),
        speaker_contributions=speakers,
        source=source,
    )


def _speakers_from_payload(raw: object) -> dict[str, SpeakerContribution]:
    if not isinstance(raw, dict):
        return {}
    speakers: dict[str, SpeakerContribution] = {}
    for name, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        try:
            speakers[str(name)] = SpeakerContribution(
                word_count=int(entry.get("wordCount", 0)),
                key_points=tuple(str(p) for p in entry.get("keyPoints") or ()),
                confidence=_clamp(entry.get("confidence", 0.0)),
            )
        except (TypeError, ValueError):
            logger.debug("Skipping malformed speaker entry for %s", name)
    return speakers


class DiscussionAnalyzer:
    """Turn discussion notes (and an optional transcript) into an AnalysisResult."""

    def __init__(self, oracle: SemanticOracle | None = None) -> None:
        self._oracle = oracle

    @property
    def uses_oracle(self) -> bool:
        return self._oracle is not None and self._oracle.available

    def analyze_locally(
        self,
        question: str,
        correct_answer: str,
        notes: str,
        transcript: str | None = None,
    ) -> AnalysisResult:
        text = f"{notes}\n{transcript}" if transcript else notes
        mentioned = mentions_answer(text, correct_answer)
        guesses = extract_guesses(text)
        return _finalize(
            mentioned=mentioned,
            guesses=guesses,
            confidence=heuristic_confidence(bool(guesses), mentioned, len(text)),
            analysis=_analysis_text(mentioned, guesses),
            suggestions=_suggestions(question),
            topics=extract_key_topics(text),
            speakers=_speaker_contributions(transcript, correct_answer) if transcript else {},
            source="local",
        )

    async def analyze(
        self,
        question: str,
        correct_answer: str,
        notes: str,
        transcript: str | None = None,
    ) -> AnalysisResult:
        if not self.uses_oracle or not (notes.strip() or (transcript or "").strip()):
            return self.analyze_locally(question, correct_answer, notes, transcript)

        try:
            payload = await self._oracle.analyze_discussion(question, correct_answer, notes, transcript)
            return self._from_payload(payload, question, correct_answer, notes, transcript)
        except Exception as exc:
            logger.warning("Oracle discussion analysis failed, using local analysis: %s", exc)
            return self.analyze_locally(question, correct_answer, notes, transcript)

    def _from_payload(
        self,
        payload: dict,
        question: str,
        correct_answer: str,
        notes: str,
        transcript: str | None,
    ) -> AnalysisResult:
        mentioned = payload.get("correctAnswerMentioned")
        guesses = payload.get("bestGuesses")
        confidence = payload.get("confidence")
        analysis = payload.get("analysis")
        if not isinstance(mentioned, bool):
            raise AnalysisParseError("correctAnswerMentioned missing or not a boolean")
        if not isinstance(guesses, list):
            raise AnalysisParseError("bestGuesses missing or not a list")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise AnalysisParseError("confidence missing or not a number")
        if not isinstance(analysis, str) or not analysis.strip():
            raise AnalysisParseError("analysis missing or empty")

        text = f"{notes}\n{transcript}" if transcript else notes
        suggestions = payload.get("suggestions")
        topics = payload.get("keyTopics")
        return _finalize(
            mentioned=mentioned,
            guesses=[str(g) for g in guesses],
            confidence=confidence,
            analysis=analysis.strip(),
            suggestions=suggestions if isinstance(suggestions, list) else _suggestions(question),
            topics=topics if isinstance(topics, list) else extract_key_topics(text),
            speakers=_speakers_from_payload(payload.get("speakerContributions")),
            source="oracle",
        )


def classify_by_heuristics(question: str, answer: str) -> Difficulty:
    total_length = len(question) + len(answer)
    word_count = len(question.split(" ")) + len(answer.split(" "))
    if len(answer) <= 15 and word_count < 30:
        return Difficulty.EASY
    if total_length > 500 or word_count > 60:
        return Difficulty.HARD
    return Difficulty.MEDIUM


class DifficultyClassifier:
    """Easy/Medium/Hard labels: oracle when available, length heuristics otherwise."""

    def __init__(self, oracle: SemanticOracle | None = None) -> None:
        self._oracle = oracle

    async def classify(self, question: str, answer: str) -> Difficulty:
        if self._oracle is None or not self._oracle.available:
            return classify_by_heuristics(question, answer)
        try:
            return await self._oracle.classify_difficulty(question, answer)
        except Exception as exc:
            logger.warning("Oracle difficulty classification failed, using heuristics: %s", exc)
            return classify_by_heuristics(question, answer)
