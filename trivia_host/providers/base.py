"""Abstract base for all oracle backends."""

from abc import ABC, abstractmethod

from trivia_host.errors import OracleError
from trivia_host.models import OracleResponse


class ProviderError(OracleError):
    """Raised when a backend call fails: timeout, HTTP error, empty reply."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Chat-completion style backend: one system instruction, one user message."""

    @abstractmethod
    def name(self) -> str:
        """Return the short backend name (e.g. 'deepseek', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(
        self,
        system: str,
        prompt: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> OracleResponse:
        """Send one request and return the reply text.

        Args:
            system: System instruction for the model.
            prompt: The user message.
            temperature: Overrides the configured temperature.
            max_tokens: Overrides the configured token budget.
            json_mode: Ask the backend for a JSON object reply where supported.

        Returns:
            OracleResponse with content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...
