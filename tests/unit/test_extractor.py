import struct
import zipfile
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from piiscan.extraction.exceptions import ArchiveValidationError, ExtractionError
from piiscan.extraction.extractor import (
    SecureExtractor,
    compression_ratio,
    decode_text,
    safe_entry_path,
)
from piiscan.extraction.models import ExtractionLimit, ExtractionLimits

ZipBuilder = Callable[..., Path]


def _extractor(max_archive_size: int = 100 * 1024 * 1024, **limits: int) -> SecureExtractor:
    return SecureExtractor(ExtractionLimits(**limits), max_archive_size=max_archive_size)


class TestSafeEntryPath:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("docs/report.txt", "docs/report.txt"),
            ("docs\\report.txt", "docs/report.txt"),
            ("./docs//report.txt", "docs/report.txt"),
        ],
    )
    def test_normalizes_relative_paths(self, name: str, expected: str) -> None:
        assert safe_entry_path(name) == expected

    @pytest.mark.parametrize(
        "name",
        ["../../etc/passwd", "docs/../../x.txt", "..\\windows\\system.ini"],
    )
    def test_rejects_parent_segments(self, name: str) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            safe_entry_path(name)
        assert exc_info.value.limit is ExtractionLimit.PATH_TRAVERSAL
        assert exc_info.value.entry_name == name

    @pytest.mark.parametrize(
        "name", ["/etc/passwd", "C:evil.txt", "C:\\evil.txt", "\\\\server\\share"]
    )
    def test_rejects_absolute_paths(self, name: str) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            safe_entry_path(name)
        assert exc_info.value.limit is ExtractionLimit.PATH_TRAVERSAL

    def test_rejects_nul_byte(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            safe_entry_path("file.txt\x00.exe")
        assert exc_info.value.limit is ExtractionLimit.PATH_TRAVERSAL


class TestHelpers:
    def test_zero_byte_entry_has_zero_ratio(self) -> None:
        assert compression_ratio(0, 0) == 0.0

    def test_non_empty_entry_without_compressed_bytes_is_infinite(self) -> None:
        assert compression_ratio(10, 0) == float("inf")

    def test_ratio(self) -> None:
        assert compression_ratio(500, 5) == 100.0

    def test_decode_utf8(self) -> None:
        assert decode_text("São Paulo".encode()) == "São Paulo"

    def test_decode_falls_back_to_latin1(self) -> None:
        assert decode_text("José".encode("latin-1")) == "José"


class TestValidate:
    def test_accepts_valid_zip(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"a.txt": "hello"})

        _extractor().validate(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ArchiveValidationError, match="not found"):
            _extractor().validate(tmp_path / "missing.zip")

    def test_too_large(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"a.txt": "hello world" * 50})

        with pytest.raises(ArchiveValidationError, match="too large"):
            _extractor(max_archive_size=10).validate(path)

    def test_not_a_zip(self, tmp_path: Path) -> None:
        path = tmp_path / "fake.zip"
        path.write_bytes(b"this is not a zip archive")

        with pytest.raises(ArchiveValidationError, match="not a valid ZIP"):
            _extractor().validate(path)

    def test_open_failure_hides_storage_path(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"a.txt": "hello"})

        with patch(
            "piiscan.extraction.extractor.zipfile.ZipFile",
            side_effect=OSError(f"[Errno 13] Permission denied: '{path}'"),
        ):
            with pytest.raises(ArchiveValidationError) as exc_info:
                _extractor().validate(path)

        assert str(exc_info.value) == "Archive cannot be opened"
        assert str(path) not in str(exc_info.value)


class TestExtract:
    def test_extracts_entries_in_order(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"b.txt": "segundo", "a/c.txt": "CPF: 111.444.777-35"})

        entries = _extractor().extract(path)

        assert [e.path for e in entries] == ["b.txt", "a/c.txt"]
        assert entries[1].content == "CPF: 111.444.777-35"
        assert entries[1].size == len("CPF: 111.444.777-35")

    def test_skips_directories(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"docs/": b"", "docs/a.txt": "x"})

        entries = _extractor().extract(path)

        assert [e.path for e in entries] == ["docs/a.txt"]

    def test_zero_byte_entry(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"empty.txt": b""})

        entries = _extractor().extract(path)

        assert entries[0].size == 0
        assert entries[0].compression_ratio == 0.0

    def test_latin1_content(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"nome.txt": "José Conceição".encode("latin-1")})

        entries = _extractor().extract(path)

        assert entries[0].content == "José Conceição"

    def test_path_traversal_entry(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"ok.txt": "fine", "../../etc/passwd": "root:x:0:0"})

        with pytest.raises(ExtractionError) as exc_info:
            _extractor().extract(path)
        assert exc_info.value.limit is ExtractionLimit.PATH_TRAVERSAL
        assert exc_info.value.entry_name == "../../etc/passwd"

    def test_absolute_entry(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"/etc/shadow": "secret"})

        with pytest.raises(ExtractionError) as exc_info:
            _extractor().extract(path)
        assert exc_info.value.limit is ExtractionLimit.PATH_TRAVERSAL

    def test_nul_byte_in_stored_name(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"evilXname.txt": "payload"})
        raw = path.read_bytes().replace(b"evilXname.txt", b"evil\x00name.txt")
        path.write_bytes(raw)

        with pytest.raises(ExtractionError) as exc_info:
            _extractor().extract(path)
        assert exc_info.value.limit is ExtractionLimit.PATH_TRAVERSAL

    def test_compression_bomb(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"bomb.txt": b"\x00" * (5 * 1024 * 1024)})

        with pytest.raises(ExtractionError) as exc_info:
            _extractor().extract(path)
        assert exc_info.value.limit is ExtractionLimit.COMPRESSION_RATIO
        assert exc_info.value.entry_name == "bomb.txt"

    def test_forged_compressed_size_in_central_directory(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"bomb.txt": b"\x00" * (2 * 1024 * 1024)})
        raw = bytearray(path.read_bytes())
        central = raw.rfind(b"PK\x01\x02")
        struct.pack_into("<I", raw, central + 20, 50_000)
        path.write_bytes(bytes(raw))

        with pytest.raises(ExtractionError) as exc_info:
            _extractor().extract(path)
        assert exc_info.value.limit is ExtractionLimit.COMPRESSION_RATIO
        assert exc_info.value.entry_name == "bomb.txt"

    def test_consistent_sizes_are_accepted(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"a.txt": "CPF: 111.444.777-35", "b.txt": "x" * 300})

        entries = _extractor().extract(path)

        with zipfile.ZipFile(path) as zf:
            declared = [info.compress_size for info in zf.infolist()]
        assert [e.compressed_size for e in entries] == declared

    def test_too_many_entries_checked_before_reading(self, make_zip: ZipBuilder) -> None:
        files: dict[str, bytes | str] = {f"f{i}.txt": "x" for i in range(1200)}
        path = make_zip(files, compression=zipfile.ZIP_STORED)

        with pytest.raises(ExtractionError) as exc_info:
            _extractor().extract(path)
        assert exc_info.value.limit is ExtractionLimit.ENTRY_COUNT
        assert exc_info.value.entry_name is None

    def test_exactly_at_entry_limit_is_allowed(self, make_zip: ZipBuilder) -> None:
        files: dict[str, bytes | str] = {f"f{i}.txt": "x" for i in range(5)}
        path = make_zip(files, compression=zipfile.ZIP_STORED)

        entries = _extractor(max_entries=5).extract(path)

        assert len(entries) == 5

    def test_entry_size_limit(self, make_zip: ZipBuilder) -> None:
        path = make_zip({"big.txt": b"a" * 200}, compression=zipfile.ZIP_STORED)

        with pytest.raises(ExtractionError) as exc_info:
            _extractor(max_entry_size=100).extract(path)
        assert exc_info.value.limit is ExtractionLimit.ENTRY_SIZE
        assert exc_info.value.entry_name == "big.txt"

    def test_total_size_limit(self, make_zip: ZipBuilder) -> None:
        files: dict[str, bytes | str] = {
            "a.txt": b"a" * 100,
            "b.txt": b"b" * 100,
            "c.txt": b"c" * 100,
        }
        path = make_zip(files, compression=zipfile.ZIP_STORED)

        with pytest.raises(ExtractionError) as exc_info:
            _extractor(max_total_size=250).extract(path)
        assert exc_info.value.limit is ExtractionLimit.TOTAL_SIZE
        assert exc_info.value.entry_name == "c.txt"

    def test_corrupt_archive(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.zip"
        path.write_bytes(b"PK\x03\x04 definitely not a real archive")

        with pytest.raises(ExtractionError) as exc_info:
            _extractor().extract(path)
        assert exc_info.value.limit is ExtractionLimit.CORRUPT_ARCHIVE
