from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from piiscan.events.models import Stage
from piiscan.extraction.models import ExtractedEntry
from piiscan.processor.models import ArchiveSubmission


@dataclass(slots=True)
class ArchiveContext:
    submission: ArchiveSubmission
    stage: Stage = Stage.VALIDATING
    entries: list[ExtractedEntry] = field(default_factory=list)
    file_job_ids: list[int] = field(default_factory=list)

    @property
    def session_id(self) -> str:
        return self.submission.session_id

    @property
    def archive_path(self) -> Path:
        return Path(self.submission.storage_path)


class PipelineStep(ABC):
    stage: Stage

    @abstractmethod
    def run(self, context: ArchiveContext) -> ArchiveContext:
        raise NotImplementedError
