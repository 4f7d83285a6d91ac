"""Decompression-bomb and path-traversal safe ZIP extraction.

Every entry is streamed in fixed-size chunks. Sizes and ratios are checked
against the declared metadata first and then against the bytes actually
produced by the decompressor, so a forged header cannot smuggle an
oversized payload past the limits. Entries are kept in memory; nothing is
written to disk.
"""

import re
import zipfile
import zlib
from pathlib import Path

from piiscan.extraction.exceptions import ArchiveValidationError, ExtractionError
from piiscan.extraction.models import ExtractedEntry, ExtractionLimit, ExtractionLimits
from piiscan.logging.logger import Log

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def safe_entry_path(name: str) -> str:
    """Return the normalized relative path of an archive entry.

    Raises:
        ExtractionError: if the path is absolute, contains a NUL byte or
            a parent-directory segment.
    """
    if "\x00" in name:
        raise ExtractionError(
            ExtractionLimit.PATH_TRAVERSAL, name, f"Unsafe entry path (NUL byte): {name!r}"
        )
    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_RE.match(normalized):
        raise ExtractionError(
            ExtractionLimit.PATH_TRAVERSAL, name, f"Unsafe entry path (absolute): {name}"
        )
    parts = [p for p in normalized.split("/") if p not in ("", ".")]
    if ".." in parts:
        raise ExtractionError(
            ExtractionLimit.PATH_TRAVERSAL, name, f"Unsafe entry path (traversal): {name}"
        )
    return "/".join(parts)


def compression_ratio(uncompressed: int, compressed: int) -> float:
    if uncompressed == 0:
        return 0.0
    if compressed <= 0:
        return float("inf")
    return uncompressed / compressed


def decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


class SecureExtractor:
    """Validates and extracts ZIP archives under configured safety limits."""

    def __init__(self, limits: ExtractionLimits, max_archive_size: int) -> None:
        self._limits = limits
        self._max_archive_size = max_archive_size

    def validate(self, archive_path: Path) -> None:
        """Check that the archive exists, fits the size bound and opens as ZIP.

        Raises:
            ArchiveValidationError: on any failed check.
        """
        if not archive_path.is_file():
            raise ArchiveValidationError("Archive file not found")
        size = archive_path.stat().st_size
        if size > self._max_archive_size:
            raise ArchiveValidationError(
                f"Archive too large: {size} bytes (max {self._max_archive_size})"
            )
        if not zipfile.is_zipfile(archive_path):
            raise ArchiveValidationError("File is not a valid ZIP archive")
        try:
            with zipfile.ZipFile(archive_path) as zf:
                zf.infolist()
        except (zipfile.BadZipFile, OSError) as exc:
            Log.warning(f"Archive {archive_path.name} cannot be opened: {exc}")
            raise ArchiveValidationError("Archive cannot be opened") from exc

    def extract(self, archive_path: Path) -> list[ExtractedEntry]:
        """Extract every file entry of the archive.

        Returns:
            Entries in archive order, with measured sizes and ratios.

        Raises:
            ExtractionError: on the first violated limit. No partial result
                is returned.
        """
        Log.info(f"Starting ZIP extraction: {archive_path.name}")
        try:
            with zipfile.ZipFile(archive_path) as zf:
                entries = self._extract_all(zf)
        except ExtractionError as exc:
            Log.warning(
                f"Extraction rejected ({exc.limit.value}) "
                f"at entry {exc.entry_name!r}: {exc}"
            )
            raise
        except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError) as exc:
            Log.warning(f"Corrupt or unsupported archive {archive_path.name}: {exc}")
            raise ExtractionError(
                ExtractionLimit.CORRUPT_ARCHIVE, None, f"Archive could not be read: {exc}"
            ) from exc

        total = sum(e.size for e in entries)
        Log.info(f"ZIP extraction completed: {len(entries)} files, {total} bytes total")
        return entries

    def _extract_all(self, zf: zipfile.ZipFile) -> list[ExtractedEntry]:
        files = [info for info in zf.infolist() if not info.is_dir()]
        if len(files) > self._limits.max_entries:
            raise ExtractionError(
                ExtractionLimit.ENTRY_COUNT,
                None,
                f"Archive contains too many files: {len(files)} "
                f"(max {self._limits.max_entries})",
            )

        spans = self._data_spans(zf)
        entries: list[ExtractedEntry] = []
        total_size = 0
        for info in files:
            path = safe_entry_path(info.orig_filename)
            self._check_declared(info, spans[info.header_offset])
            raw = self._read_entry(zf, info, total_size)
            total_size += len(raw)
            entries.append(
                ExtractedEntry(
                    path=path,
                    content=decode_text(raw),
                    size=len(raw),
                    compressed_size=info.compress_size,
                    compression_ratio=compression_ratio(len(raw), info.compress_size),
                )
            )
            Log.debug(f"Extracted file: {path} ({len(raw)} bytes)")
        return entries

    @staticmethod
    def _data_spans(zf: zipfile.ZipFile) -> dict[int, int]:
        """Map each local header offset to the bytes up to the next header.

        The last entry ends where the central directory starts. An entry's
        compressed data can never be larger than its span.
        """
        offsets = sorted({info.header_offset for info in zf.infolist()})
        ends = offsets[1:] + [zf.start_dir]
        return {offset: end - offset for offset, end in zip(offsets, ends)}

    def _check_declared(self, info: zipfile.ZipInfo, span: int) -> None:
        """Reject on archive metadata before any byte is decompressed."""
        if info.compress_size > span:
            raise ExtractionError(
                ExtractionLimit.COMPRESSION_RATIO,
                info.filename,
                f"Declared compressed size does not match the archive layout: "
                f"{info.filename} ({info.compress_size} bytes declared, {span} available)",
            )
        if info.file_size > self._limits.max_entry_size:
            raise ExtractionError(
                ExtractionLimit.ENTRY_SIZE,
                info.filename,
                f"File too large: {info.filename} ({info.file_size} bytes declared)",
            )
        ratio = compression_ratio(info.file_size, info.compress_size)
        if ratio > self._limits.max_compression_ratio:
            raise ExtractionError(
                ExtractionLimit.COMPRESSION_RATIO,
                info.filename,
                f"Suspicious compression ratio: {info.filename} ({ratio:.1f}:1 declared)",
            )

    def _read_entry(self, zf: zipfile.ZipFile, info: zipfile.ZipInfo, total_before: int) -> bytes:
        """Stream one entry, enforcing limits on the bytes actually produced."""
        chunks: list[bytes] = []
        read = 0
        with zf.open(info) as stream:
            while True:
                chunk = stream.read(self._limits.chunk_size)
                if not chunk:
                    break
                read += len(chunk)
                if read > self._limits.max_entry_size:
                    raise ExtractionError(
                        ExtractionLimit.ENTRY_SIZE,
                        info.filename,
                        f"File size limit exceeded during reading: {info.filename}",
                    )
                ratio = compression_ratio(read, info.compress_size)
                if ratio > self._limits.max_compression_ratio:
                    raise ExtractionError(
                        ExtractionLimit.COMPRESSION_RATIO,
                        info.filename,
                        f"Suspicious compression ratio during reading: "
                        f"{info.filename} ({ratio:.1f}:1)",
                    )
                if total_before + read > self._limits.max_total_size:
                    raise ExtractionError(
                        ExtractionLimit.TOTAL_SIZE,
                        info.filename,
                        "Total uncompressed size limit exceeded "
                        f"(max {self._limits.max_total_size} bytes)",
                    )
                chunks.append(chunk)
        return b"".join(chunks)
