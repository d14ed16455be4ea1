"""Shared pytest fixtures."""

import json
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, GameDefaults, ModelConfig, PromptsConfig
from trivia_host.models import OracleResponse, QuestionItem
from trivia_host.oracle import OracleSettings, SemanticOracle
from trivia_host.providers.base import AIProvider


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=300,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        equivalence="Compare answers. Respond with JSON.",
        analysis="Analyze the discussion. Respond with JSON.",
        difficulty="Classify difficulty: Easy, Medium or Hard.",
        hint="Give a hint.",
        introduction="Introduce the question.",
    )


@pytest.fixture
def sample_defaults() -> GameDefaults:
    return GameDefaults(round_time=30, round_count=5, reading_time=0, provider="deepseek")


@pytest.fixture
def sample_app_config(sample_defaults: GameDefaults, sample_prompts_config: PromptsConfig) -> AppConfig:
    model_cfg = ModelConfig(
        name="deepseek",
        sdk="openai",
        model="deepseek-chat",
        api_key_env="DEEPSEEK_API_KEY",
        timeout_sec=30,
        max_tokens=300,
        base_url="https://api.deepseek.com",
    )
    return AppConfig(
        defaults=sample_defaults,
        models={"deepseek": model_cfg},
        prompts=sample_prompts_config,
        available_providers=frozenset({"deepseek"}),
    )


@pytest.fixture
def sample_questions() -> list[QuestionItem]:
    return [
        QuestionItem(question="What is the capital of France?", answer="Paris"),
        QuestionItem(question="Who was crowned Emperor of the French in 1804?", answer="Napoleon Bonaparte"),
        QuestionItem(question="What is the chemical symbol for gold?", answer="Au"),
    ]


def oracle_reply(content: str | dict, provider: str = "mock") -> OracleResponse:
    if isinstance(content, dict):
        content = json.dumps(content)
    return OracleResponse(provider=provider, model="mock-model", content=content, latency_sec=0.1, token_count=10)


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str | dict = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=oracle_reply(response_content, provider_name)
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, system, prompt, *, temperature=None, max_tokens=None, json_mode=False):  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return oracle_reply(self._response_content, self._name)


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


def make_oracle(provider: AIProvider | None, prompts: PromptsConfig) -> SemanticOracle:
    return SemanticOracle(provider, prompts, OracleSettings(model="mock-model"))


@pytest.fixture
def unavailable_oracle(sample_prompts_config: PromptsConfig) -> SemanticOracle:
    return SemanticOracle(None, sample_prompts_config)
