"""Base interface for image analysis (vision) providers."""

from abc import ABC, abstractmethod


class VisionError(Exception):
    """Raised when an image could not be analyzed."""

    pass


class VisionProvider(ABC):
    """Abstract base class for vision providers.

    Unlike the job clients, analysis is a single synchronous call. Failures
    raise ``VisionError`` because there is no partial result to return.

    Implementations:
    - OpenAIVisionProvider: OpenAI chat completions with an image input
    - StubVisionProvider: Returns a canned description for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def analyze(self, image_url: str, instructions: str) -> str:
        """Describe an image.

        Args:
            image_url: Publicly reachable URL of the image
            instructions: What the description should cover

        Returns:
            The analysis text

        Raises:
            VisionError: If the provider failed or returned nothing
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy.

        Returns:
            True if provider is operational, False otherwise
        """
        return True
