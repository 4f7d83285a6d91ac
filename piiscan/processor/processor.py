from pathlib import Path

from piiscan.collaborators.antivirus import BaseVirusScanner
from piiscan.collaborators.exceptions import AntivirusError
from piiscan.events.channel import EventChannel
from piiscan.events.models import ProgressEvent, SessionFailed, Stage
from piiscan.extraction.exceptions import ArchiveValidationError, ExtractionError
from piiscan.extraction.extractor import SecureExtractor
from piiscan.logging.logger import Log
from piiscan.processor.exceptions import InfectedArchiveError
from piiscan.processor.finalizer import SessionFinalizer
from piiscan.processor.models import ArchiveSubmission
from piiscan.processor.pipeline import ArchiveContext, PipelineStep
from piiscan.processor.steps import (
    ExtractArchiveStep,
    FanOutStep,
    ScanArchiveStep,
    ValidateArchiveStep,
)
from piiscan.queue.base import JobQueue
from piiscan.sessions.base import SessionStore
from piiscan.sessions.models import SessionState

# Errors whose message is safe to show to the user as-is.
_USER_FACING_ERRORS = (
    ArchiveValidationError,
    ExtractionError,
    InfectedArchiveError,
)

# Scanner output names the stored file, so it only goes to the log.
ANTIVIRUS_FAILED_MESSAGE = "Antivirus scan failed"

# States a redelivered archive job can find when its first run died midway.
_INTERRUPTED_STATES = frozenset(
    {SessionState.VALIDATING, SessionState.EXTRACTING, SessionState.FANNING_OUT}
)


class ArchiveProcessor:
    """Runs one archive job: validate -> scan -> extract -> fan out.

    Archive-level failures end the session; they are never retried.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        session_store: SessionStore,
        channel: EventChannel,
    ) -> None:
        self._steps = steps
        self._session_store = session_store
        self._channel = channel

    def process(self, submission: ArchiveSubmission) -> None:
        session_id = submission.session_id
        Log.info(f"Processing archive {submission.original_name} for session {session_id}")
        context = ArchiveContext(submission=submission)
        try:
            if not self._begin(session_id):
                return
            for step in self._steps:
                context.stage = step.stage
                context = step.run(context)
        except Exception as exc:
            self._fail(context, exc)
        finally:
            Path(submission.storage_path).unlink(missing_ok=True)

    def _begin(self, session_id: str) -> bool:
        """Claim the session for this job; a redelivered job finds it started."""
        if self._session_store.set_state(session_id, SessionState.VALIDATING):
            return True
        record = self._session_store.get(session_id)
        if record is not None and record.state in _INTERRUPTED_STATES:
            self._session_store.fail(
                session_id, record.state.value, "Archive processing was interrupted"
            )
            self._channel.publish(
                SessionFailed(session_id, record.state.value, "Archive processing was interrupted")
            )
            return False
        state = record.state.value if record is not None else "missing"
        Log.warning(f"Session {session_id} is {state}, skipping archive job")
        return False

    def _fail(self, context: ArchiveContext, exc: Exception) -> None:
        stage = context.stage.value
        if isinstance(exc, AntivirusError):
            message = ANTIVIRUS_FAILED_MESSAGE
            Log.warning(f"Session {context.session_id} failed at {stage}: {exc}")
        elif isinstance(exc, _USER_FACING_ERRORS):
            message = str(exc)
            Log.warning(f"Session {context.session_id} failed at {stage}: {message}")
        else:
            message = "Internal error while processing the archive"
            Log.exception(f"Session {context.session_id} failed at {stage}: {exc}")
        self._session_store.fail(context.session_id, stage, message)
        self._channel.publish(SessionFailed(context.session_id, stage, message))
        self._channel.publish(
            ProgressEvent(
                context.session_id, Stage.ERROR, 0, message, detail={"failed_stage": stage}
            )
        )


def build_archive_processor(
    *,
    extractor: SecureExtractor,
    scanner: BaseVirusScanner,
    session_store: SessionStore,
    job_queue: JobQueue,
    finalizer: SessionFinalizer,
    channel: EventChannel,
) -> ArchiveProcessor:
    """Build an ArchiveProcessor with the standard step order."""
    steps: list[PipelineStep] = [
        ValidateArchiveStep(extractor, channel),
        ScanArchiveStep(scanner, channel),
        ExtractArchiveStep(extractor, session_store, channel),
        FanOutStep(session_store, job_queue, finalizer, channel),
    ]
    return ArchiveProcessor(steps, session_store, channel)
