from piiscan.config.settings import Settings
from piiscan.extraction.extractor import SecureExtractor
from piiscan.extraction.models import ExtractionLimits


class ExtractorFactory:
    """Creates the secure extractor with limits taken from settings."""

    @classmethod
    def create(cls, settings: Settings) -> SecureExtractor:
        limits = ExtractionLimits(
            max_entries=settings.max_archive_entries,
            max_entry_size=settings.max_entry_size_bytes,
            max_total_size=settings.max_total_uncompressed_bytes,
            max_compression_ratio=settings.max_compression_ratio,
            chunk_size=settings.extraction_chunk_size,
        )
        return SecureExtractor(limits, max_archive_size=settings.max_archive_size_bytes)
