"""Answer arbitration: local fuzzy match first, semantic oracle only on a local mismatch."""

import logging

from trivia_host.models import ArbitrationResult
from trivia_host.oracle import SemanticOracle
from trivia_host.validator import validate

logger = logging.getLogger(__name__)

# Answers longer than this are never sent to the oracle.
MAX_ORACLE_ANSWER_LENGTH = 500
# Minimum oracle confidence for an "equivalent" verdict to count.
ORACLE_ACCEPT_CONFIDENCE = 0.7


class SemanticArbitrator:
    """Decide whether a team answer is correct.

    resolve() never raises: every oracle failure (missing credential, timeout,
    HTTP error, malformed JSON) marks the answer incorrect. No retry is made.
    No client-side timeout is applied here; the bound is the provider's own
    timeout_sec.
    """

    def __init__(self, oracle: SemanticOracle | None = None) -> None:
        self._oracle = oracle

    async def resolve(
        self,
        team_answer: str,
        correct_answer: str,
        ai_enabled: bool,
        language: str = "en",
    ) -> ArbitrationResult:
        if validate(team_answer, correct_answer):
            return ArbitrationResult(is_correct=True, exact_match=True)

        rejected = ArbitrationResult(is_correct=False, exact_match=False)

        if not ai_enabled or self._oracle is None or not self._oracle.available:
            return rejected
        if not team_answer or not team_answer.strip() or not correct_answer or not correct_answer.strip():
            return rejected
        if len(team_answer) > MAX_ORACLE_ANSWER_LENGTH:
            logger.info("Answer of %d chars exceeds oracle limit, not escalating", len(team_answer))
            return rejected

        try:
            verdict = await self._oracle.check_equivalence(team_answer, correct_answer, language)
        except Exception as exc:
            logger.warning("Oracle equivalence check failed, marking answer incorrect: %s", exc)
            return rejected

        accepted = verdict.equivalent and verdict.confidence >= ORACLE_ACCEPT_CONFIDENCE
        logger.debug(
            "Oracle verdict: equivalent=%s confidence=%.2f accepted=%s",
            verdict.equivalent, verdict.confidence, accepted,
        )
        return ArbitrationResult(
            is_correct=accepted,
            exact_match=False,
            ai_accepted=accepted,
            ai_confidence=verdict.confidence,
            ai_explanation=verdict.explanation,
        )
