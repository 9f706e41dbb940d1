"""Base interface for image generation providers."""

from abc import ABC, abstractmethod
from typing import Any


class ImageGenProvider(ABC):
    """Abstract base class for image generation providers.

    Providers are model-agnostic: they submit provider-shaped arguments built
    by an ``ImageModelConfig`` and return the raw output, which the model
    config then normalizes to URLs.

    Implementations:
    - FalImageGenProvider: Runs hosted models on fal.ai
    - StubImageGenProvider: Returns placeholder images for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def run(self, model_id: str, arguments: dict[str, Any]) -> Any:
        """Run one generation call.

        Args:
            model_id: Provider-specific model identifier
            arguments: Model input built by the model config

        Returns:
            Raw provider output

        Raises:
            ProviderError: If the call fails
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available.

        Returns:
            True if provider is operational
        """
        return True
