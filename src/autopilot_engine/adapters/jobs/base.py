"""Base interface for long-running external generation jobs.

Every generation provider (image, video, narrated render) is reached through
the same contract: submit now, receive an opaque job id, poll later.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from autopilot_engine.domain.enums import JobState


@dataclass
class JobRequest:
    """Request to start an external generation job."""

    prompt: str = ""
    image_urls: list[str] = field(default_factory=list)  # Reference images
    aspect_ratio: str = "9:16"
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class JobSubmission:
    """Result of submitting a job."""

    success: bool
    job_id: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class JobPollResult:
    """Provider-reported state of a previously submitted job."""

    state: JobState
    result_urls: list[str] = field(default_factory=list)
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def result_url(self) -> str | None:
        return self.result_urls[0] if self.result_urls else None


class ExternalJobClient(ABC):
    """Abstract base class for asynchronous generation providers.

    Implementations:
    - StubJobClient: Deterministic in-process jobs for development and tests
    - KieFluxKontextClient: Image generation via Kie.ai Flux Kontext
    - KieVeoClient: Image-referenced video generation via Kie.ai Veo
    - RenderWorkerClient: Narrated video composition on the render worker

    ``submit`` never raises for provider-side rejections; it returns a
    ``JobSubmission`` with ``success=False``. ``poll`` returns
    ``JobState.UNKNOWN`` when the provider cannot be reached or answers with
    something unrecognized, so callers can simply try again on a later tick.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier, stored on the media asset."""
        ...

    @abstractmethod
    async def submit(self, request: JobRequest) -> JobSubmission:
        """Submit a job to the provider.

        Args:
            request: Prompt, reference images and provider parameters

        Returns:
            JobSubmission with the provider's job id or error information
        """
        ...

    @abstractmethod
    async def poll(self, job_id: str) -> JobPollResult:
        """Fetch the current state of a submitted job.

        Args:
            job_id: The id returned by ``submit``

        Returns:
            JobPollResult describing the provider-side state
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy.

        Returns:
            True if provider is operational, False otherwise
        """
        return True
