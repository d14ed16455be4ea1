"""Semantic oracle client: builds prompts, calls a provider, parses the JSON replies."""

import json
import logging
import re
from dataclasses import dataclass

from config.config_loader import AppConfig, ModelConfig, PromptsConfig
from trivia_host.errors import AnalysisParseError, OracleUnavailableError
from trivia_host.models import Difficulty, EquivalenceVerdict
from trivia_host.providers.anthropic import AnthropicProvider
from trivia_host.providers.base import AIProvider, ProviderError
from trivia_host.providers.gemini import GeminiProvider
from trivia_host.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass(frozen=True)
class OracleSettings:
    """Read-only oracle parameters for one session."""

    model: str = ""
    temperature: float = 0.7
    max_tokens: int = 300

    @classmethod
    def from_model_config(cls, config: ModelConfig) -> "OracleSettings":
        return cls(model=config.model, temperature=config.temperature, max_tokens=config.max_tokens)


def parse_json_object(content: str) -> dict:
    """Parse a JSON object reply, tolerating Markdown code fences around it.

    Raises:
        AnalysisParseError: If the content is not a JSON object.
    """
    text = _FENCE.sub("", content.strip())
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AnalysisParseError(f"Oracle reply is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise AnalysisParseError(f"Oracle reply is a JSON {type(payload).__name__}, expected an object")
    return payload


class SemanticOracle:
    """Capability wrapper around an optional AIProvider.

    With no provider every method raises OracleUnavailableError before any
    network I/O, so callers can treat "no credential" like any other failure.
    """

    def __init__(
        self,
        provider: AIProvider | None,
        prompts: PromptsConfig,
        settings: OracleSettings | None = None,
    ) -> None:
        self._provider = provider
        self._prompts = prompts
        self._settings = settings or OracleSettings()

    @property
    def available(self) -> bool:
        return self._provider is not None

    @property
    def settings(self) -> OracleSettings:
        return self._settings

    async def _ask(self, system: str, prompt: str, **kwargs) -> str:
        if self._provider is None:
            raise OracleUnavailableError("No oracle backend configured")
        response = await self._provider.generate(system, prompt, **kwargs)
        return response.content

    async def check_equivalence(self, team_answer: str, correct_answer: str, language: str) -> EquivalenceVerdict:
        content = await self._ask(
            self._prompts.equivalence,
            f'Correct answer: "{correct_answer}"\n'
            f'User\'s answer: "{team_answer}"\n'
            f"Language context: {language}\n\n"
            "Are these answers semantically equivalent?",
            temperature=0.1,
            max_tokens=100,
            json_mode=True,
        )
        payload = parse_json_object(content)
        if "equivalent" not in payload:
            raise AnalysisParseError("Equivalence reply has no 'equivalent' field")
        confidence = payload.get("confidence", 0.0)
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise AnalysisParseError(f"Equivalence confidence is not a number: {confidence!r}")
        return EquivalenceVerdict(
            equivalent=payload["equivalent"] is True,
            confidence=float(confidence),
            explanation=str(payload.get("explanation") or ""),
        )

    async def analyze_discussion(
        self,
        question: str,
        correct_answer: str,
        notes: str,
        transcript: str | None = None,
    ) -> dict:
        """Return the raw analysis payload; shaping and bounds are the analyzer's job."""
        prompt = f"Question: {question}\nCorrect Answer: {correct_answer}\nTeam Discussion: {notes}"
        if transcript:
            prompt += f"\nAudio Transcript: {transcript}"
        content = await self._ask(
            self._prompts.analysis,
            prompt,
            temperature=0.3,
            max_tokens=max(self._settings.max_tokens, 500),
            json_mode=True,
        )
        return parse_json_object(content)

    async def classify_difficulty(self, question: str, answer: str) -> Difficulty:
        content = await self._ask(
            self._prompts.difficulty,
            f'Question: "{question}"\nAnswer: "{answer}"\n\nDifficulty:',
            temperature=0.3,
            max_tokens=10,
        )
        label = content.strip().upper()
        for difficulty in (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD):
            if difficulty.value.upper() in label:
                return difficulty
        raise AnalysisParseError(f"Unrecognized difficulty label: {content.strip()[:40]!r}")

    async def generate_hint(
        self,
        question: str,
        answer: str,
        difficulty: Difficulty,
        previous_hints: list[str] | None = None,
    ) -> str:
        prompt = (
            f'Question: "{question}"\nCorrect answer: "{answer}"\n\n'
            f"Provide a {difficulty.value.lower()} difficulty hint."
        )
        if previous_hints:
            prompt += f"\nPrevious hints provided: {', '.join(previous_hints)}. Give new information."
        content = await self._ask(self._prompts.hint, prompt, max_tokens=100)
        return content.strip()

    async def generate_introduction(
        self,
        question: str,
        difficulty: Difficulty,
        round_number: int,
        total_rounds: int,
    ) -> str:
        content = await self._ask(
            self._prompts.introduction,
            f'Question: "{question}"\nDifficulty: {difficulty.value}\n'
            f"This is question {round_number} of {total_rounds}.\n\n"
            "Please provide a brief introduction:",
            max_tokens=100,
        )
        return content.strip()


def build_oracle(config: AppConfig) -> SemanticOracle:
    """Build the oracle for the configured backend, or an unavailable one.

    Never raises: a missing key or unknown SDK degrades to local heuristics.
    """
    model_cfg = config.oracle_model()
    if model_cfg is None:
        logger.info("No oracle credential configured, using local heuristics only")
        return SemanticOracle(None, config.prompts)

    provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
    if provider_cls is None:
        logger.warning("Oracle SDK '%s' unknown, using local heuristics only", model_cfg.sdk)
        return SemanticOracle(None, config.prompts)

    try:
        provider = provider_cls(model_cfg)
    except ProviderError as exc:
        logger.warning("Failed to build oracle backend '%s': %s", model_cfg.name, exc)
        return SemanticOracle(None, config.prompts)

    logger.info("Oracle initialized with model: %s", model_cfg.model)
    return SemanticOracle(provider, config.prompts, OracleSettings.from_model_config(model_cfg))
