"""Chain orchestrator: image -> vision analysis -> image-referenced video.

Both provider calls are asynchronous. The orchestrator submits a job, stores
the provider's job id and returns; a later ``check_*`` call (from the
periodic poll task or an API request) moves the chain forward. The two check
methods are no-ops outside their own stage, so a poller can call ``poll`` on
every processing job without branching on its stage.

Before each provider submit a ``SubmissionIntent`` is persisted on the job.
It is cleared in the same write that stores the returned job id. The vision
call records one too, cleared in the write that stores the analysis. An
intent left behind by a crash is failed by ``sweep_orphaned_submissions``
once it is older than the grace period.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from autopilot_engine.adapters.jobs.base import (
    ExternalJobClient,
    JobPollResult,
    JobRequest,
    JobSubmission,
)
from autopilot_engine.adapters.vision.base import VisionProvider
from autopilot_engine.domain.chain import (
    ChainError,
    ChainState,
    IllegalTransitionError,
    SubmissionIntent,
)
from autopilot_engine.domain.enums import AssetKind, AssetStatus, ChainStage, JobState
from autopilot_engine.domain.models import GenerationJob, utcnow
from autopilot_engine.logging import get_logger
from autopilot_engine.repositories.base import GenerationJobRepository
from autopilot_engine.services.prompts import (
    IMAGE_ANALYSIS_INSTRUCTIONS,
    PromptVariables,
    build_image_prompt,
    build_video_prompt,
)

logger = get_logger(__name__)

ORPHANED_SUBMISSION_MESSAGE = (
    "Provider submission was never acknowledged; the provider job may be orphaned"
)


class JobNotFoundError(ChainError):
    """Raised when a chain operation names a job that does not exist."""

    def __init__(self, job_id: UUID) -> None:
        super().__init__(f"Generation job not found: {job_id}")
        self.job_id = job_id


class NotAChainJobError(ChainError):
    """Raised when a chain operation is given a job without chain state."""

    pass


class ChainOrchestrator:
    """Drives generation jobs through the chain state machine.

    Args:
        jobs: Repository the job state is read from and written to
        image_client: Provider for the first (image) stage
        video_client: Provider for the final (video) stage
        vision: Synchronous image analysis provider
        stage_timeout: Fail a stage whose provider job has been outstanding
            longer than this; None disables the check
        intent_grace: Age after which an unacknowledged submission is orphaned
        clock: Source of "now"
    """

    def __init__(
        self,
        jobs: GenerationJobRepository,
        image_client: ExternalJobClient,
        video_client: ExternalJobClient,
        vision: VisionProvider,
        stage_timeout: timedelta | None = None,
        intent_grace: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.jobs = jobs
        self.image_client = image_client
        self.video_client = video_client
        self.vision = vision
        self.stage_timeout = stage_timeout
        self.intent_grace = intent_grace
        self.clock = clock

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _load(self, job_id: UUID) -> tuple[GenerationJob, ChainState]:
        job = self.jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if job.chain_state is None:
            raise NotAChainJobError(f"Job {job_id} is not a chain job")
        return job, job.chain_state

    def _variables(self, job: GenerationJob) -> PromptVariables:
        return PromptVariables.from_dict(job.metadata.get("prompt_variables", {}))

    async def _submit_with_intent(
        self,
        job: GenerationJob,
        target: ChainStage,
        client: ExternalJobClient,
        request: JobRequest,
    ) -> JobSubmission:
        """Persist an intent, then submit. Exceptions become failed submissions."""
        job.pending_submission = SubmissionIntent(
            stage=target.value,
            provider=client.name,
            recorded_at=self.clock(),
        )
        self.jobs.save(job)

        try:
            return await client.submit(request)
        except Exception as e:
            logger.exception("chain_submit_raised", job_id=str(job.id), stage=target)
            return JobSubmission(success=False, error_message=str(e))

    async def _safe_poll(self, client: ExternalJobClient, external_id: str) -> JobPollResult:
        try:
            return await client.poll(external_id)
        except Exception as e:
            logger.warning("chain_poll_raised", external_job_id=external_id, error=str(e))
            return JobPollResult(state=JobState.UNKNOWN, error_message=str(e))

    def _stage_expired(self, started_at: datetime | None) -> bool:
        if self.stage_timeout is None or started_at is None:
            return False
        return self.clock() - started_at > self.stage_timeout

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def create_job(
        self,
        owner_id: str,
        variables: PromptVariables,
        product_image_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> GenerationJob:
        """Accept a generation request and persist it in the ``queued`` stage."""
        job = GenerationJob(
            owner_id=owner_id,
            provider=self.image_client.name,
            kind=AssetKind.IMAGE,
            prompt=build_image_prompt(variables),
            chain_state=ChainState(),
            metadata={
                **(metadata or {}),
                "prompt_variables": variables.to_dict(),
                "product_image_url": product_image_url,
            },
        )
        self.jobs.add(job)
        logger.info("chain_job_created", job_id=str(job.id), owner_id=owner_id)
        return job

    async def start_image_generation(self, job_id: UUID) -> GenerationJob:
        """Submit the image stage and move to ``generating_image``."""
        job, state = self._load(job_id)
        if not state.can_transition(ChainStage.GENERATING_IMAGE):
            raise IllegalTransitionError(state.stage, ChainStage.GENERATING_IMAGE)

        product_image_url = job.metadata.get("product_image_url")
        request = JobRequest(
            prompt=job.prompt or build_image_prompt(self._variables(job)),
            image_urls=[product_image_url] if product_image_url else [],
        )

        submission = await self._submit_with_intent(
            job, ChainStage.GENERATING_IMAGE, self.image_client, request
        )
        if not submission.success or not submission.job_id:
            return await self.handle_chain_error(
                job_id,
                ChainStage.GENERATING_IMAGE,
                submission.error_message or "Image provider returned no job id",
            )

        now = self.clock()
        state.transition(ChainStage.GENERATING_IMAGE)
        state.image_task_id = submission.job_id
        state.timestamps.image_started_at = now
        job.external_job_id = submission.job_id
        job.provider = self.image_client.name
        job.pending_submission = None
        self.jobs.save(job)

        logger.info(
            "chain_image_submitted",
            job_id=str(job_id),
            external_job_id=submission.job_id,
            provider=self.image_client.name,
        )
        return job

    async def check_image_status(self, job_id: UUID) -> bool:
        """Advance a job waiting on its image.

        Returns True if the job left ``generating_image`` during this call.
        """
        job, state = self._load(job_id)
        if state.stage != ChainStage.GENERATING_IMAGE or not job.external_job_id:
            return False

        result = await self._safe_poll(self.image_client, job.external_job_id)

        if result.state == JobState.FAILED:
            await self.handle_chain_error(
                job_id,
                ChainStage.GENERATING_IMAGE,
                result.error_message or "Image generation failed",
            )
            return True

        if result.state == JobState.READY:
            if not result.result_url:
                await self.handle_chain_error(
                    job_id,
                    ChainStage.GENERATING_IMAGE,
                    "Image provider reported success without a result URL",
                )
                return True
            logger.info("chain_image_ready", job_id=str(job_id), image_url=result.result_url[:100])
            await self.analyze_image(job_id, result.result_url)
            return True

        if self._stage_expired(state.timestamps.image_started_at):
            await self.handle_chain_error(
                job_id, ChainStage.GENERATING_IMAGE, "Image generation timed out"
            )
            return True

        logger.debug("chain_image_pending", job_id=str(job_id), provider_state=result.state)
        return False

    async def analyze_image(self, job_id: UUID, image_url: str) -> GenerationJob:
        """Describe the generated image and hand off to the video stage.

        Any failure here ends the chain in ``error``; the image stage is not
        retried.
        """
        job, state = self._load(job_id)
        now = self.clock()
        state.transition(ChainStage.ANALYZING_IMAGE)
        state.image_url = image_url
        state.timestamps.image_completed_at = now
        job.pending_submission = SubmissionIntent(
            stage=ChainStage.ANALYZING_IMAGE.value,
            provider=self.vision.name,
            recorded_at=now,
        )
        self.jobs.save(job)

        try:
            analysis = await self.vision.analyze(image_url, IMAGE_ANALYSIS_INSTRUCTIONS)
        except Exception as e:
            logger.error("chain_analysis_failed", job_id=str(job_id), error=str(e))
            return await self.handle_chain_error(
                job_id, ChainStage.ANALYZING_IMAGE, f"Image analysis failed: {e}"
            )

        video_prompt = build_video_prompt(self._variables(job), analysis)
        state.image_analysis = analysis
        state.video_prompt = video_prompt
        state.timestamps.analysis_completed_at = self.clock()
        job.pending_submission = None
        self.jobs.save(job)

        logger.info("chain_analysis_completed", job_id=str(job_id), analysis_length=len(analysis))
        return await self.start_video_generation(job_id, video_prompt, image_url)

    async def start_video_generation(
        self, job_id: UUID, prompt: str, reference_image_url: str
    ) -> GenerationJob:
        """Submit the video stage with the generated image as visual reference."""
        job, state = self._load(job_id)
        if not state.can_transition(ChainStage.GENERATING_VIDEO):
            raise IllegalTransitionError(state.stage, ChainStage.GENERATING_VIDEO)

        request = JobRequest(prompt=prompt, image_urls=[reference_image_url])
        submission = await self._submit_with_intent(
            job, ChainStage.GENERATING_VIDEO, self.video_client, request
        )
        if not submission.success or not submission.job_id:
            return await self.handle_chain_error(
                job_id,
                ChainStage.GENERATING_VIDEO,
                submission.error_message or "Video provider returned no job id",
            )

        state.transition(ChainStage.GENERATING_VIDEO)
        state.video_task_id = submission.job_id
        state.timestamps.video_started_at = self.clock()
        job.external_job_id = submission.job_id
        job.provider = self.video_client.name
        job.kind = AssetKind.VIDEO
        job.prompt = prompt
        job.pending_submission = None
        self.jobs.save(job)

        logger.info(
            "chain_video_submitted",
            job_id=str(job_id),
            external_job_id=submission.job_id,
            provider=self.video_client.name,
        )
        return job

    async def check_video_status(self, job_id: UUID) -> bool:
        """Complete a job waiting on its video.

        Returns True if the job left ``generating_video`` during this call.
        """
        job, state = self._load(job_id)
        if state.stage != ChainStage.GENERATING_VIDEO or not job.external_job_id:
            return False

        result = await self._safe_poll(self.video_client, job.external_job_id)

        if result.state == JobState.FAILED:
            await self.handle_chain_error(
                job_id,
                ChainStage.GENERATING_VIDEO,
                result.error_message or "Video generation failed",
            )
            return True

        if result.state == JobState.READY:
            if not result.result_url:
                await self.handle_chain_error(
                    job_id,
                    ChainStage.GENERATING_VIDEO,
                    "Video provider reported success without a result URL",
                )
                return True

            now = self.clock()
            state.transition(ChainStage.COMPLETED)
            state.timestamps.video_completed_at = now
            job.status = AssetStatus.READY
            job.result_url = result.result_url
            job.result_urls = list(result.result_urls)
            job.completed_at = now
            self.jobs.save(job)

            logger.info(
                "chain_completed",
                job_id=str(job_id),
                result_url=result.result_url[:100],
                duration=state.duration_label(),
            )
            return True

        if self._stage_expired(state.timestamps.video_started_at):
            await self.handle_chain_error(
                job_id, ChainStage.GENERATING_VIDEO, "Video generation timed out"
            )
            return True

        logger.debug("chain_video_pending", job_id=str(job_id), provider_state=result.state)
        return False

    async def handle_chain_error(
        self, job_id: UUID, stage: ChainStage, message: str
    ) -> GenerationJob:
        """Fail a chain. Calling it again on an errored job only replaces the message."""
        job, state = self._load(job_id)
        state.fail(stage, message, self.clock())
        job.status = AssetStatus.ERROR
        job.error_message = f"Chain failed at {state.failed_stage}: {message}"
        job.pending_submission = None
        self.jobs.save(job)

        logger.error(
            "chain_failed",
            job_id=str(job_id),
            stage=stage,
            failed_stage=state.failed_stage,
            error=message,
        )
        return job

    async def poll(self, job_id: UUID) -> GenerationJob:
        """Run both stage checks; only the one matching the job's stage acts."""
        await self.check_image_status(job_id)
        await self.check_video_status(job_id)
        job, _ = self._load(job_id)
        return job

    async def sweep_orphaned_submission(self, job: GenerationJob, now: datetime) -> bool:
        """Fail a chain job whose submission intent outlived the grace period."""
        intent = job.pending_submission
        if intent is None or job.chain_state is None:
            return False
        if now - intent.recorded_at <= self.intent_grace:
            return False

        logger.warning(
            "chain_orphaned_submission",
            job_id=str(job.id),
            stage=intent.stage,
            provider=intent.provider,
            recorded_at=intent.recorded_at.isoformat(),
        )
        await self.handle_chain_error(job.id, ChainStage(intent.stage), ORPHANED_SUBMISSION_MESSAGE)
        return True

    async def sweep_orphaned_submissions(
        self, now: datetime | None = None, limit: int | None = None
    ) -> int:
        """Fail every processing job whose submission intent outlived the grace period.

        Chain jobs go through ``handle_chain_error``; single-stage jobs (render
        jobs) are marked ``error`` directly. Returns the number of jobs failed.
        """
        now = now or self.clock()
        swept = 0
        for job in self.jobs.list_processing(limit):
            if job.pending_submission is None:
                continue
            try:
                if job.chain_state is not None:
                    swept += await self.sweep_orphaned_submission(job, now)
                elif now - job.pending_submission.recorded_at > self.intent_grace:
                    logger.warning(
                        "orphaned_submission",
                        job_id=str(job.id),
                        provider=job.pending_submission.provider,
                    )
                    job.status = AssetStatus.ERROR
                    job.error_message = ORPHANED_SUBMISSION_MESSAGE
                    job.pending_submission = None
                    self.jobs.save(job)
                    swept += 1
            except Exception:
                logger.exception("orphaned_submission_sweep_failed", job_id=str(job.id))
        if swept:
            logger.info("orphaned_submissions_swept", count=swept)
        return swept
