from dataclasses import asdict

from piiscan.collaborators.antivirus import BaseVirusScanner
from piiscan.events.channel import EventChannel
from piiscan.events.models import ProgressEvent, Stage
from piiscan.extraction.extractor import SecureExtractor
from piiscan.logging.logger import Log
from piiscan.processor.exceptions import InfectedArchiveError
from piiscan.processor.finalizer import SessionFinalizer
from piiscan.processor.models import FileJobPayload
from piiscan.processor.pipeline import ArchiveContext, PipelineStep
from piiscan.queue.base import FILE_QUEUE, JobQueue
from piiscan.sessions.base import SessionStore
from piiscan.sessions.models import SessionState


class ValidateArchiveStep(PipelineStep):
    stage = Stage.VALIDATING

    def __init__(self, extractor: SecureExtractor, channel: EventChannel) -> None:
        self._extractor = extractor
        self._channel = channel

    def run(self, context: ArchiveContext) -> ArchiveContext:
        self._channel.publish(
            ProgressEvent(context.session_id, Stage.VALIDATING, 10, "Validating archive")
        )
        self._extractor.validate(context.archive_path)
        Log.info(f"Session {context.session_id}: archive {context.submission.original_name} valid")
        return context


class ScanArchiveStep(PipelineStep):
    stage = Stage.SCANNING

    def __init__(self, scanner: BaseVirusScanner, channel: EventChannel) -> None:
        self._scanner = scanner
        self._channel = channel

    def run(self, context: ArchiveContext) -> ArchiveContext:
        self._channel.publish(
            ProgressEvent(context.session_id, Stage.SCANNING, 20, "Scanning archive for malware")
        )
        result = self._scanner.scan(context.archive_path)
        if result.is_infected:
            raise InfectedArchiveError(result.signatures)
        return context


class ExtractArchiveStep(PipelineStep):
    """Extract entries in memory; the stored archive is removed afterwards."""

    stage = Stage.EXTRACTING

    def __init__(
        self,
        extractor: SecureExtractor,
        session_store: SessionStore,
        channel: EventChannel,
    ) -> None:
        self._extractor = extractor
        self._session_store = session_store
        self._channel = channel

    def run(self, context: ArchiveContext) -> ArchiveContext:
        self._session_store.set_state(context.session_id, SessionState.EXTRACTING)
        self._channel.publish(
            ProgressEvent(context.session_id, Stage.EXTRACTING, 30, "Extracting files")
        )
        try:
            context.entries = self._extractor.extract(context.archive_path)
        finally:
            context.archive_path.unlink(missing_ok=True)
        Log.info(f"Session {context.session_id}: extracted {len(context.entries)} files")
        return context


class FanOutStep(PipelineStep):
    """Enqueue one file job per extracted entry."""

    stage = Stage.PROCESSING

    def __init__(
        self,
        session_store: SessionStore,
        job_queue: JobQueue,
        finalizer: SessionFinalizer,
        channel: EventChannel,
    ) -> None:
        self._session_store = session_store
        self._job_queue = job_queue
        self._finalizer = finalizer
        self._channel = channel

    def run(self, context: ArchiveContext) -> ArchiveContext:
        session_id = context.session_id
        total = len(context.entries)
        self._session_store.set_state(session_id, SessionState.FANNING_OUT)
        self._session_store.set_total_files(session_id, total)
        self._channel.publish(
            ProgressEvent(
                session_id,
                Stage.PROCESSING,
                40,
                f"Processing {total} files",
                detail={"total_files": total},
            )
        )

        if total == 0:
            Log.info(f"Session {session_id}: archive has no files, aggregating")
            if self._session_store.set_state(session_id, SessionState.AGGREGATING):
                self._finalizer.finalize(session_id)
            return context

        for index, entry in enumerate(context.entries):
            payload = FileJobPayload(
                session_id=session_id,
                entry_index=index,
                filename=entry.path,
                content=entry.content,
                archive_name=context.submission.original_name,
            )
            context.file_job_ids.append(self._job_queue.enqueue(FILE_QUEUE, asdict(payload)))
        # Fast file workers may already have moved the session past this state.
        self._session_store.set_state(session_id, SessionState.AWAITING_FILE_RESULTS)
        Log.info(f"Session {session_id}: enqueued {total} file jobs")
        return context
