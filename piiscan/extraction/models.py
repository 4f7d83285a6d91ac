from dataclasses import dataclass
from enum import Enum


class ExtractionLimit(str, Enum):
    """Safety limit that an archive can violate during extraction."""

    ENTRY_COUNT = "entry_count"
    PATH_TRAVERSAL = "path_traversal"
    ENTRY_SIZE = "entry_size"
    COMPRESSION_RATIO = "compression_ratio"
    TOTAL_SIZE = "total_size"
    CORRUPT_ARCHIVE = "corrupt_archive"


@dataclass(frozen=True)
class ExtractionLimits:
    """Thresholds enforced while streaming an archive."""

    max_entries: int = 1000
    max_entry_size: int = 100 * 1024 * 1024
    max_total_size: int = 500 * 1024 * 1024
    max_compression_ratio: float = 100.0
    chunk_size: int = 64 * 1024


@dataclass(frozen=True)
class ExtractedEntry:
    """One file pulled out of an archive, with sizes measured while reading."""

    path: str
    content: str
    size: int
    compressed_size: int
    compression_ratio: float
