"""Video generators the autopilot scheduler can drive.

Two generators share one contract. ``AutopilotVideoService`` builds a
narrated product video (scripts, voiceover, scene timing) and submits it to
the render worker as a single job. ``ChainVideoGenerator`` runs the
image -> analysis -> video chain instead. In both cases ``generate`` returns
as soon as the provider has accepted the work; completion is picked up by
the periodic poll through ``check_status``.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from autopilot_engine.adapters.jobs.base import ExternalJobClient, JobRequest, JobSubmission
from autopilot_engine.adapters.voiceover.base import VoiceoverProvider
from autopilot_engine.domain.chain import SubmissionIntent
from autopilot_engine.domain.enums import AssetKind, AssetStatus, JobState
from autopilot_engine.domain.models import GenerationJob, Product, Store, utcnow
from autopilot_engine.logging import get_logger
from autopilot_engine.repositories.base import GenerationJobRepository
from autopilot_engine.services.audio_preparer import prepare_narration_audio
from autopilot_engine.services.chain import ChainOrchestrator
from autopilot_engine.services.prompts import PromptVariables
from autopilot_engine.services.scene_timing import (
    DEFAULT_PADDING_SECONDS,
    DEFAULT_TARGET_SECONDS,
    FPS,
    adjust_to_target,
    calculate_scene_durations,
    validate_total_duration,
)
from autopilot_engine.services.scripts import build_default_scripts, format_price

logger = get_logger(__name__)

MIN_IMAGES = 2
MAX_IMAGES = 4
AVATAR_SECONDS = 8
VIDEO_WIDTH = 1080
VIDEO_HEIGHT = 1920
COMPOSITION_ID = "AutopilotVideo"

_NON_NUMERIC_RE = re.compile(r"[^0-9.]")


class InsufficientImagesError(ValueError):
    """Raised when a product does not have enough images to build a video."""

    pass


@dataclass
class VideoGenerationRequest:
    """One autopilot video for one product."""

    owner_id: str
    product: Product
    store: Store | None = None
    include_avatar: bool = False
    voice_id: str | None = None
    cta_text: str = "Shop Now"


@dataclass
class VideoGenerationResult:
    """Outcome of handing a video to its provider."""

    success: bool
    media_asset_id: UUID | None = None
    error_message: str | None = None


class VideoGenerator(ABC):
    """Produces a media asset for a product, asynchronously."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def generate(self, request: VideoGenerationRequest) -> VideoGenerationResult:
        """Create a media asset and submit its generation.

        Never raises; failures are reported in the result, and the media
        asset (if one was created) is left in ``error``.
        """
        ...

    @abstractmethod
    async def check_status(self, job_id: UUID) -> bool:
        """Advance the asset if its provider job finished. No-op for foreign jobs."""
        ...


def calculate_discount(price: str | float | None, original_price: str | float | None) -> str | None:
    """``"NN% OFF"`` when the original price is higher than the current one."""
    if price is None or original_price is None:
        return None
    try:
        current = float(_NON_NUMERIC_RE.sub("", str(price)))
        original = float(_NON_NUMERIC_RE.sub("", str(original_price)))
    except ValueError:
        return None
    if original <= current:
        return None
    return f"{round((original - current) / original * 100)}% OFF"


class AutopilotVideoService(VideoGenerator):
    """Narrated product videos rendered by the render worker."""

    def __init__(
        self,
        jobs: GenerationJobRepository,
        render_client: ExternalJobClient,
        voiceover: VoiceoverProvider,
        target_duration_seconds: float = DEFAULT_TARGET_SECONDS,
        padding_seconds: float = DEFAULT_PADDING_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.jobs = jobs
        self.render_client = render_client
        self.voiceover = voiceover
        self.target_duration_seconds = target_duration_seconds
        self.padding_seconds = padding_seconds
        self.clock = clock

    @property
    def name(self) -> str:
        return "narrated"

    def _fail(self, job: GenerationJob, message: str) -> VideoGenerationResult:
        job.status = AssetStatus.ERROR
        job.error_message = message
        job.pending_submission = None
        self.jobs.save(job)
        logger.error("autopilot_video_failed", job_id=str(job.id), error=message)
        return VideoGenerationResult(success=False, media_asset_id=job.id, error_message=message)

    async def generate(self, request: VideoGenerationRequest) -> VideoGenerationResult:
        product = request.product
        images = product.images

        if len(images) < MIN_IMAGES:
            return VideoGenerationResult(
                success=False,
                error_message=f"Minimum {MIN_IMAGES} product images required",
            )
        if len(images) > MAX_IMAGES:
            return VideoGenerationResult(
                success=False,
                error_message=f"Maximum {MAX_IMAGES} product images allowed",
            )

        job = GenerationJob(
            owner_id=request.owner_id,
            provider=self.render_client.name,
            kind=AssetKind.VIDEO,
            prompt=f"Autopilot Video: {product.title}",
            metadata={
                "product_id": str(product.id),
                "product_name": product.title,
                "product_images": list(images),
                "include_avatar": request.include_avatar,
                "started_at": self.clock().isoformat(),
            },
        )
        self.jobs.add(job)
        logger.info("autopilot_video_started", job_id=str(job.id), product=product.title)

        try:
            return await self._render(job, request)
        except Exception as e:
            logger.exception("autopilot_video_processing_raised", job_id=str(job.id))
            return self._fail(job, str(e) or "Unknown processing error")

    async def _render(
        self, job: GenerationJob, request: VideoGenerationRequest
    ) -> VideoGenerationResult:
        product = request.product
        price = format_price(product.price)
        original_price = format_price(product.original_price) or None

        # Step 1: scripts
        scripts = build_default_scripts(
            product.title,
            product.features or product.description or "",
            price,
            original_price,
        )

        # Step 2: narration audio
        audio = await prepare_narration_audio(
            scripts.narrations(), self.voiceover, request.voice_id
        )
        if audio.errors:
            logger.warning(
                "autopilot_video_voiceover_warnings", job_id=str(job.id), errors=audio.errors
            )

        # Step 3: scene timing
        durations = calculate_scene_durations(
            audio.durations(),
            padding_seconds=self.padding_seconds,
            avatar_seconds=AVATAR_SECONDS if request.include_avatar else 0,
        )
        durations = adjust_to_target(durations, self.target_duration_seconds)
        validation = validate_total_duration(durations)
        if not validation.valid:
            logger.warning(
                "autopilot_video_duration_out_of_range",
                job_id=str(job.id),
                message=validation.message,
            )

        job.metadata.update(
            {
                "scripts": scripts.to_dict(),
                "scene_durations": durations.to_dict(),
                "total_duration": durations.total_seconds,
                "audio_urls": audio.urls(),
            }
        )

        # Step 4: composition props
        input_props = {
            "productName": product.title,
            "productImages": list(product.images),
            "price": price,
            "originalPrice": original_price,
            "hookText": scripts.hook,
            "problemText": scripts.problem_narration,
            "revealText": "Introducing",
            "features": [{"text": text, "icon": "check"} for text in scripts.features_list],
            "socialProofText": scripts.social_proof_text,
            "socialProofName": scripts.social_proof_name,
            "socialProofRating": 5,
            "discountText": calculate_discount(product.price, product.original_price),
            "ctaText": request.cta_text,
            "audioUrls": audio.urls(),
            "sceneDurations": {
                scene.value: frames for scene, frames in durations.active_scenes().items()
            },
        }
        render_request = JobRequest(
            params={
                "job_id": str(job.id),
                "composition_id": COMPOSITION_ID,
                "input_props": input_props,
                "output_config": {
                    "fps": FPS,
                    "width": VIDEO_WIDTH,
                    "height": VIDEO_HEIGHT,
                    "durationInFrames": durations.total_frames,
                },
            }
        )

        # Step 5: submit, recording the intent first
        job.pending_submission = SubmissionIntent(
            stage="rendering",
            provider=self.render_client.name,
            recorded_at=self.clock(),
        )
        self.jobs.save(job)

        submission: JobSubmission = await self.render_client.submit(render_request)
        if not submission.success or not submission.job_id:
            return self._fail(job, submission.error_message or "Render job submission failed")

        job.external_job_id = submission.job_id
        job.pending_submission = None
        job.metadata["step"] = "rendering"
        self.jobs.save(job)

        logger.info(
            "autopilot_video_render_submitted",
            job_id=str(job.id),
            render_job_id=submission.job_id,
            total_seconds=durations.total_seconds,
        )
        return VideoGenerationResult(success=True, media_asset_id=job.id)

    async def check_status(self, job_id: UUID) -> bool:
        return await self.check_render_status(job_id)

    async def check_render_status(self, job_id: UUID) -> bool:
        """Poll the render worker for a narrated job.

        No-op for chain jobs, finished jobs, jobs of other providers and jobs
        without a render id. Returns True if the job finished during this call.
        """
        job = self.jobs.get(job_id)
        if (
            job is None
            or job.chain_state is not None
            or job.status != AssetStatus.PROCESSING
            or job.provider != self.render_client.name
            or not job.external_job_id
        ):
            return False

        try:
            result = await self.render_client.poll(job.external_job_id)
        except Exception as e:
            logger.warning("render_poll_raised", job_id=str(job_id), error=str(e))
            return False

        if result.state == JobState.FAILED:
            self._fail(job, result.error_message or "Render failed")
            return True

        if result.state == JobState.READY and result.result_url:
            now = self.clock()
            job.status = AssetStatus.READY
            job.result_url = result.result_url
            job.result_urls = list(result.result_urls)
            job.completed_at = now
            job.metadata["step"] = "complete"
            self.jobs.save(job)
            logger.info(
                "autopilot_video_ready", job_id=str(job_id), result_url=result.result_url[:100]
            )
            return True

        if result.state == JobState.READY:
            self._fail(job, "Render reported complete without a result URL")
            return True

        logger.debug("autopilot_video_rendering", job_id=str(job_id), provider_state=result.state)
        return False


class ChainVideoGenerator(VideoGenerator):
    """Autopilot generation through the image -> analysis -> video chain."""

    def __init__(
        self,
        orchestrator: ChainOrchestrator,
        default_icp: str,
        default_scene: str,
    ) -> None:
        self.orchestrator = orchestrator
        self.default_icp = default_icp
        self.default_scene = default_scene

    @property
    def name(self) -> str:
        return "chain"

    def variables_for(self, request: VideoGenerationRequest) -> PromptVariables:
        product = request.product
        icp = (request.store.target_audience if request.store else None) or self.default_icp
        return PromptVariables(
            product=product.title,
            features=product.features or product.description or "",
            icp=icp,
            scene=self.default_scene,
        )

    async def generate(self, request: VideoGenerationRequest) -> VideoGenerationResult:
        try:
            job = self.orchestrator.create_job(
                request.owner_id,
                self.variables_for(request),
                product_image_url=request.product.images[0] if request.product.images else None,
                metadata={"product_id": str(request.product.id)},
            )
            job = await self.orchestrator.start_image_generation(job.id)
        except Exception as e:
            logger.exception("chain_generation_raised", product_id=str(request.product.id))
            return VideoGenerationResult(success=False, error_message=str(e))

        if job.status == AssetStatus.ERROR:
            return VideoGenerationResult(
                success=False, media_asset_id=job.id, error_message=job.error_message
            )
        return VideoGenerationResult(success=True, media_asset_id=job.id)

    async def check_status(self, job_id: UUID) -> bool:
        job = self.orchestrator.jobs.get(job_id)
        if job is None or job.chain_state is None:
            return False
        before = job.chain_state.stage
        job = await self.orchestrator.poll(job_id)
        return job.chain_state is not None and job.chain_state.stage != before
