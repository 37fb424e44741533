"""External job clients for image, video and render providers."""

from autopilot_engine.adapters.jobs.base import (
    ExternalJobClient,
    JobPollResult,
    JobRequest,
    JobSubmission,
)
from autopilot_engine.adapters.jobs.kie import KieFluxKontextClient, KieVeoClient
from autopilot_engine.adapters.jobs.render_worker import RenderWorkerClient
from autopilot_engine.adapters.jobs.stub import StubJobClient

__all__ = [
    "ExternalJobClient",
    "JobPollResult",
    "JobRequest",
    "JobSubmission",
    "KieFluxKontextClient",
    "KieVeoClient",
    "RenderWorkerClient",
    "StubJobClient",
]
