"""Job orchestrator for the avatar composite pipeline."""

import uuid
from typing import Any, Callable, Optional

from avatar_compositor.application.observers import LoggingTranscodeObserver
from avatar_compositor.domain.models import (
    OUTPUT_CONTENT_TYPE,
    CompositeJob,
    CompositeRequest,
    JobResponse,
    JobStage,
    RemoteLocator,
)
from avatar_compositor.domain.protocols import (
    IMetricsCollector,
    IScratchWorkspace,
    ITranscodeObserver,
    ITranscoder,
    ITransfer,
)
from avatar_compositor.domain.exceptions import DomainException, ValidationError
from avatar_compositor.shared.logging import get_logger, JobLoggerAdapter
from avatar_compositor.shared.metrics import MetricsCollector

logger = get_logger(__name__)

SUCCESS_MESSAGE = "Video processed successfully."
FAILURE_MESSAGE = "Failed to process video."


def _new_job_id() -> str:
    return str(uuid.uuid4())


class CompositeJobOrchestrator:
    """
    Entry point for one composite request.

    Validating -> DownloadingInputs -> Transcoding -> UploadingOutput ->
    Succeeded, with Failed reachable from every stage. The scratch directory
    is removed before ``handle`` returns, whatever the outcome.
    """

    def __init__(
        self,
        transfer: ITransfer,
        workspace: IScratchWorkspace,
        transcoder: ITranscoder,
        observer_factory: Optional[Callable[[str], ITranscodeObserver]] = None,
        id_factory: Callable[[], str] = _new_job_id,
        metrics_factory: Callable[[], IMetricsCollector] = MetricsCollector
    ):
        self._transfer = transfer
        self._workspace = workspace
        self._transcoder = transcoder
        self._id_factory = id_factory
        self._metrics_factory = metrics_factory
        self._logger = get_logger(__name__)
        self._observer_factory = observer_factory or (
            lambda job_id: LoggingTranscodeObserver(self._logger, job_id)
        )

    def handle(self, payload: Any) -> JobResponse:
        """Process one decoded request body and map the outcome to a response."""
        job_id = self._id_factory()
        log = JobLoggerAdapter(self._logger, job_id)
        log.info("Received composite request")

        try:
            request = CompositeRequest.from_payload(payload)
        except ValidationError as e:
            log.warning(f"Rejected request: {e}")
            return JobResponse(400, {"jobId": job_id, "error": str(e)})

        metrics = self._metrics_factory()
        metrics.start_timer('total_job')
        job: Optional[CompositeJob] = None

        try:
            with self._workspace.scoped(job_id) as scratch_dir:
                job = CompositeJob(job_id=job_id, request=request, scratch_dir=scratch_dir)
                destination = self._execute(job, log, metrics)

        except DomainException as e:
            stage = self._mark_failed(job)
            log.error(f"Job failed during {stage}: {e}")
            return self._failure(job_id, e)

        except Exception as e:
            stage = self._mark_failed(job)
            log.exception(f"Unexpected error during {stage}: {e}")
            return self._failure(job_id, e)

        finally:
            metrics.stop_timer('total_job')
            log.info(f"Job timings: {metrics.format_durations()}")
            log.debug(f"Job metrics: {metrics.get_summary()}")

        return JobResponse(200, {
            "jobId": job_id,
            "message": SUCCESS_MESSAGE,
            "outputGcsPath": destination.uri,
        })

    def _execute(
        self,
        job: CompositeJob,
        log: JobLoggerAdapter,
        metrics: IMetricsCollector
    ) -> RemoteLocator:
        request = job.request

        # 1. Download inputs, sequentially; first failure aborts
        job.advance(JobStage.DOWNLOADING_INPUTS)
        log.info("Downloading files...")
        metrics.start_timer('download')
        for locator, local_path in (
            (request.background_video, job.local_background),
            (request.avatar_video, job.local_avatar),
            (request.audio, job.local_audio),
        ):
            downloaded = self._transfer.download(locator, local_path)
            metrics.increment_counter('files_downloaded')
            metrics.record_metric('input_bytes', downloaded.stat().st_size)
        metrics.stop_timer('download')
        log.info("Files downloaded.")

        # 2. Transcode
        job.advance(JobStage.TRANSCODING)
        log.info("Starting FFmpeg processing...")
        metrics.start_timer('transcode')
        self._transcoder.run(job.inputs, job.local_output, self._observer_factory(job.job_id))
        metrics.stop_timer('transcode')

        # 3. Upload
        job.advance(JobStage.UPLOADING_OUTPUT)
        metrics.record_metric('output_bytes', job.local_output.stat().st_size)
        metrics.start_timer('upload')
        destination = self._transfer.upload(
            job.local_output,
            request.output_bucket,
            request.output_file_name,
            OUTPUT_CONTENT_TYPE
        )
        metrics.stop_timer('upload')
        metrics.increment_counter('files_uploaded')
        log.info(f"Upload successful: {destination.uri}")

        job.advance(JobStage.SUCCEEDED)
        return destination

    @staticmethod
    def _mark_failed(job: Optional[CompositeJob]) -> str:
        # No job yet means the workspace could not be acquired
        if job is None:
            return JobStage.DOWNLOADING_INPUTS.value
        job.fail()
        return job.failed_stage.value

    @staticmethod
    def _failure(job_id: str, error: Exception) -> JobResponse:
        return JobResponse(500, {
            "jobId": job_id,
            "error": FAILURE_MESSAGE,
            "details": str(error) or type(error).__name__,
        })
