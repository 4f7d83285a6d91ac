from collections.abc import Callable

from piiscan.collaborators.antivirus import VirusScannerFactory
from piiscan.collaborators.notifier import HttpProgressNotifier
from piiscan.collaborators.persistence import (
    BasePersistence,
    InMemoryPersistence,
    PostgresPersistence,
)
from piiscan.collaborators.workflow import WorkflowTrigger
from piiscan.config.settings import Settings
from piiscan.database.connection import Database
from piiscan.detection.factory import DetectorFactory
from piiscan.detection.risk import SensitivityMatcher
from piiscan.enhancement import EnhancerFactory
from piiscan.events.channel import EventChannel
from piiscan.events.models import ProgressEvent, SessionCompleted, SessionFailed
from piiscan.extraction.factory import ExtractorFactory
from piiscan.logging.logger import Log
from piiscan.processor.aggregator import SessionAggregator
from piiscan.processor.file_processor import FileProcessor
from piiscan.processor.finalizer import SessionFinalizer
from piiscan.processor.processor import build_archive_processor
from piiscan.queue.factory import JobQueueFactory
from piiscan.sessions.factory import SessionStoreFactory
from piiscan.worker.handlers import ArchiveJobHandler, FileJobHandler
from piiscan.worker.job_runner import JobRunner
from piiscan.worker.pool import WorkerPool


def log_session_failure(event: SessionFailed) -> None:
    Log.warning(f"Session {event.session_id} failed at {event.stage}: {event.message}")


def main() -> None:
    """Entry point: open services -> build dependencies -> run the worker pool."""
    settings = Settings()
    Log.configure(settings.log_level)

    database: Database | None = None
    if settings.queue_backend.lower() == "postgres":
        database = Database(settings)
        database.open()
        database.apply_schema()

    channel = EventChannel()
    closers: list[Callable[[], None]] = []
    try:
        job_queue = JobQueueFactory.create(settings, database)
        session_store = SessionStoreFactory.create(settings, database)
        persistence: BasePersistence = (
            PostgresPersistence(database) if database is not None else InMemoryPersistence()
        )
        channel.subscribe(persistence, SessionCompleted)
        channel.subscribe(log_session_failure, SessionFailed)
        if settings.progress_webhook_url:
            notifier = HttpProgressNotifier(
                settings.progress_webhook_url, settings.webhook_timeout_seconds
            )
            channel.subscribe(notifier, ProgressEvent)
            closers.append(notifier.close)
        if settings.workflow_webhook_url:
            trigger = WorkflowTrigger(
                settings.workflow_webhook_url, settings.webhook_timeout_seconds
            )
            channel.subscribe(trigger, SessionCompleted)
            closers.append(trigger.close)
        channel.start()

        sensitivity = SensitivityMatcher(settings.sensitive_keyword_list())
        finalizer = SessionFinalizer(
            session_store, SessionAggregator(settings.max_recommendations), channel
        )
        archive_processor = build_archive_processor(
            extractor=ExtractorFactory.create(settings),
            scanner=VirusScannerFactory.create(settings),
            session_store=session_store,
            job_queue=job_queue,
            finalizer=finalizer,
            channel=channel,
        )
        file_processor = FileProcessor(
            detector=DetectorFactory.create(settings),
            enhancer=EnhancerFactory.create(settings, sensitivity),
            session_store=session_store,
            finalizer=finalizer,
        )
        job_runner = JobRunner(
            [
                ArchiveJobHandler(archive_processor, session_store),
                FileJobHandler(file_processor),
            ],
            job_queue,
            settings,
        )
        pool = WorkerPool(job_queue, job_runner, settings)
        pool.start()
        try:
            pool.wait()
        finally:
            pool.stop()
    finally:
        channel.close()
        for close in closers:
            close()
        if database is not None:
            database.close()


if __name__ == "__main__":
    main()
