"""Host text: question introductions, hints and per-round feedback.

Introductions and hints are capabilities with a local and an oracle-backed
implementation; which one a session gets is decided once, at construction.
"""

import logging
from abc import ABC, abstractmethod

from trivia_host.messages import MessageCatalog
from trivia_host.models import Difficulty, Round
from trivia_host.oracle import SemanticOracle

logger = logging.getLogger(__name__)


class IntroGenerator(ABC):
    @abstractmethod
    async def introduce(self, question: str, difficulty: Difficulty, round_number: int, total_rounds: int) -> str:
        ...


class LocalHeuristicIntroGenerator(IntroGenerator):
    def __init__(self, catalog: MessageCatalog | None = None) -> None:
        self._catalog = catalog or MessageCatalog()

    async def introduce(self, question: str, difficulty: Difficulty, round_number: int, total_rounds: int) -> str:
        return self._catalog.lookup("intro.local", number=round_number, total=total_rounds, question=question)


class OracleIntroGenerator(IntroGenerator):
    """Oracle-written introduction; any failure falls back to the local text."""

    def __init__(self, oracle: SemanticOracle, catalog: MessageCatalog | None = None) -> None:
        self._oracle = oracle
        self._catalog = catalog or MessageCatalog()
        self._fallback = LocalHeuristicIntroGenerator(self._catalog)

    async def introduce(self, question: str, difficulty: Difficulty, round_number: int, total_rounds: int) -> str:
        try:
            intro = await self._oracle.generate_introduction(question, difficulty, round_number, total_rounds)
        except Exception as exc:
            logger.warning("Oracle introduction failed, using local text: %s", exc)
            intro = ""
        if not intro:
            return await self._fallback.introduce(question, difficulty, round_number, total_rounds)
        return self._catalog.lookup(
            "intro.oracle", intro=intro, number=round_number, total=total_rounds, question=question,
        )


class HintGenerator(ABC):
    @abstractmethod
    async def hint(
        self,
        question: str,
        answer: str,
        difficulty: Difficulty,
        previous_hints: list[str] | None = None,
    ) -> str:
        ...


def local_hint(answer: str, difficulty: Difficulty, catalog: MessageCatalog | None = None) -> str:
    """Structural hint: the easier the question, the more it reveals."""
    catalog = catalog or MessageCatalog()
    words = answer.split()
    plural = "" if len(words) == 1 else "s"
    if difficulty == Difficulty.EASY:
        initials = "".join(w[0] for w in words)
        return catalog.lookup("hint.easy", initials=initials, words=len(words), plural=plural)
    if difficulty == Difficulty.MEDIUM:
        return catalog.lookup("hint.medium", chars=len(answer), words=len(words), plural=plural)
    if len(words) > 1:
        return catalog.lookup("hint.hard_multi", words=len(words))
    return catalog.lookup("hint.hard_single", chars=len(answer))


class LocalHeuristicHintGenerator(HintGenerator):
    def __init__(self, catalog: MessageCatalog | None = None) -> None:
        self._catalog = catalog or MessageCatalog()

    async def hint(self, question, answer, difficulty, previous_hints=None) -> str:
        return local_hint(answer, difficulty, self._catalog)


class OracleHintGenerator(HintGenerator):
    def __init__(self, oracle: SemanticOracle, catalog: MessageCatalog | None = None) -> None:
        self._oracle = oracle
        self._catalog = catalog or MessageCatalog()

    async def hint(self, question, answer, difficulty, previous_hints=None) -> str:
        if question and answer:
            try:
                text = await self._oracle.generate_hint(question, answer, difficulty, previous_hints)
                if text:
                    return text
            except Exception as exc:
                logger.warning("Oracle hint failed, using local hint: %s", exc)
        return local_hint(answer, difficulty, self._catalog)


def build_intro_generator(oracle: SemanticOracle | None, catalog: MessageCatalog | None = None) -> IntroGenerator:
    if oracle is not None and oracle.available:
        return OracleIntroGenerator(oracle, catalog)
    return LocalHeuristicIntroGenerator(catalog)


def build_hint_generator(oracle: SemanticOracle | None, catalog: MessageCatalog | None = None) -> HintGenerator:
    if oracle is not None and oracle.available:
        return OracleHintGenerator(oracle, catalog)
    return LocalHeuristicHintGenerator(catalog)


def round_feedback(round_data: Round, catalog: MessageCatalog | None = None) -> str:
    catalog = catalog or MessageCatalog()
    if round_data.is_correct:
        return catalog.lookup("round.correct", answer=round_data.correct_answer)
    heard = round_data.correct_answer.strip().lower() in round_data.discussion_notes.lower()
    key = "round.heard" if heard and round_data.correct_answer.strip() else "round.not_heard"
    return catalog.lookup(key, answer=round_data.correct_answer)
