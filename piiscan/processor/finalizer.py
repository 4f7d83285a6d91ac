from piiscan.events.channel import EventChannel
from piiscan.events.models import ProgressEvent, SessionCompleted, SessionFailed, Stage
from piiscan.logging.logger import Log
from piiscan.processor.aggregator import SessionAggregator
from piiscan.processor.models import FileProcessingResult
from piiscan.sessions.base import SessionStore


class SessionFinalizer:
    """Records file results and completes the session after the last one."""

    def __init__(
        self,
        session_store: SessionStore,
        aggregator: SessionAggregator,
        channel: EventChannel,
    ) -> None:
        self._session_store = session_store
        self._aggregator = aggregator
        self._channel = channel

    def record(self, result: FileProcessingResult) -> None:
        is_last = self._session_store.record_file_result(result)
        self._publish_progress(result.session_id)
        if is_last:
            self.finalize(result.session_id)

    def finalize(self, session_id: str) -> None:
        """Aggregate and complete a session already moved to aggregating."""
        results = self._session_store.file_results(session_id)
        try:
            verdict = self._aggregator.aggregate(session_id, results)
        except Exception as exc:
            Log.exception(f"Session {session_id}: aggregation failed: {exc}")
            self._session_store.fail(session_id, "aggregating", "Aggregation failed")
            self._channel.publish(SessionFailed(session_id, "aggregating", "Aggregation failed"))
            return

        self._session_store.complete(session_id, verdict)
        Log.info(
            f"Session {session_id} completed: {verdict.overall_risk_level.value} "
            f"(score {verdict.risk_score}, {verdict.total_detections} detections, "
            f"{verdict.failed_files}/{verdict.total_files} files failed)"
        )
        self._channel.publish(SessionCompleted(verdict=verdict, results=results))
        self._channel.publish(
            ProgressEvent(
                session_id,
                Stage.COMPLETE,
                100,
                "Analysis complete",
                detail={
                    "overall_risk_level": verdict.overall_risk_level.value,
                    "risk_score": verdict.risk_score,
                },
            )
        )

    def _publish_progress(self, session_id: str) -> None:
        record = self._session_store.get(session_id)
        if record is None or not record.total_files:
            return
        percent = 40 + (55 * record.resolved_files) // record.total_files
        self._channel.publish(
            ProgressEvent(
                session_id,
                Stage.PROCESSING,
                percent,
                f"Processed {record.resolved_files}/{record.total_files} files",
                detail={"resolved_files": record.resolved_files, "total_files": record.total_files},
            )
        )
