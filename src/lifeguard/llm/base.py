"""Abstract inference client interface."""

from abc import ABC, abstractmethod

from lifeguard.llm.types import GenerateRequest, GenerateResult


class InferenceClient(ABC):
    """Abstract interface for multimodal inference endpoints."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Client identifier (e.g., 'gemini')."""
        ...

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Default model for this client."""
        ...

    @property
    def configured(self) -> bool:
        """Whether the client has the credentials it needs to make calls."""
        return True

    @abstractmethod
    async def generate(self, request: GenerateRequest) -> GenerateResult:
        """Issue a single generation request (no retries).

        Args:
            request: Prompt parts, model and sampling settings.

        Returns:
            Raw result with the response text.
        """
        ...
