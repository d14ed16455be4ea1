"""Load settings.yaml into frozen dataclasses. Reports which oracle backends have credentials."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass(frozen=True)
class ModelConfig:
    name: str
    sdk: str               # "openai", "anthropic", "gemini"
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    temperature: float = 0.7
    base_url: str | None = None


@dataclass(frozen=True)
class PromptsConfig:
    equivalence: str
    analysis: str
    difficulty: str
    hint: str
    introduction: str


@dataclass(frozen=True)
class GameDefaults:
    round_time: int
    round_count: int
    reading_time: int = 0
    language: str = "en"
    ai_enabled: bool = True
    analysis_enabled: bool = True
    provider: str | None = None


@dataclass(frozen=True)
class AppConfig:
    defaults: GameDefaults
    models: dict[str, ModelConfig]
    prompts: PromptsConfig
    messages: dict[str, str] = field(default_factory=dict)
    available_providers: frozenset[str] = frozenset()

    def oracle_model(self) -> ModelConfig | None:
        """Return the configured oracle backend, or None if it has no credential."""
        name = self.defaults.provider
        if not name or name not in self.available_providers:
            return None
        return self.models.get(name)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    A missing API key is not an error: the backend is left out of
    available_providers and the oracle degrades to local heuristics.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = GameDefaults(
        round_time=int(defaults_raw["round_time"]),
        round_count=int(defaults_raw["round_count"]),
        reading_time=int(defaults_raw.get("reading_time", 0)),
        language=str(defaults_raw.get("language", "en")),
        ai_enabled=bool(defaults_raw.get("ai_enabled", True)),
        analysis_enabled=bool(defaults_raw.get("analysis_enabled", True)),
        provider=defaults_raw.get("provider"),
    )

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        equivalence=prompts_raw["equivalence"],
        analysis=prompts_raw["analysis"],
        difficulty=prompts_raw["difficulty"],
        hint=prompts_raw["hint"],
        introduction=prompts_raw["introduction"],
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in (raw.get("models") or {}).items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            temperature=float(model_raw.get("temperature", 0.7)),
            base_url=model_raw.get("base_url"),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Oracle backend available: %s", provider_name)
        else:
            logger.info(
                "Oracle backend skipped (no API key): %s, set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    messages = {str(k): str(v) for k, v in (raw.get("messages") or {}).items()}

    return AppConfig(
        defaults=defaults,
        models=models,
        prompts=prompts,
        messages=messages,
        available_providers=frozenset(available_providers),
    )
