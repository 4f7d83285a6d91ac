import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from piiscan.collaborators.antivirus import ClamdScanner, NoopScanner, parse_signatures
from piiscan.collaborators.exceptions import AntivirusError


def _completed(returncode: int, stdout: str = "", stderr: str = "") -> MagicMock:
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestClamdScanner:
    def test_clean_file(self, tmp_path: Path) -> None:
        scanner = ClamdScanner(timeout_seconds=5)
        with patch("piiscan.collaborators.antivirus.subprocess.run") as mock_run:
            mock_run.return_value = _completed(0, "stream: OK\n")
            result = scanner.scan(tmp_path / "a.zip")

        assert result.is_infected is False
        args = mock_run.call_args.args[0]
        assert args == ["clamdscan", "--no-summary", "--fdpass", "--stream", str(tmp_path / "a.zip")]
        assert mock_run.call_args.kwargs["timeout"] == 5

    def test_infected_file(self, tmp_path: Path) -> None:
        scanner = ClamdScanner()
        with patch("piiscan.collaborators.antivirus.subprocess.run") as mock_run:
            mock_run.return_value = _completed(1, "stream: Eicar-Test-Signature FOUND\n")
            result = scanner.scan(tmp_path / "a.zip")

        assert result.is_infected is True
        assert result.signatures == ["Eicar-Test-Signature"]

    def test_scanner_error_exit_code(self, tmp_path: Path) -> None:
        scanner = ClamdScanner()
        with patch("piiscan.collaborators.antivirus.subprocess.run") as mock_run:
            mock_run.return_value = _completed(2, stderr="Could not connect to clamd\n")
            with pytest.raises(AntivirusError, match="Could not connect"):
                scanner.scan(tmp_path / "a.zip")

    def test_timeout(self, tmp_path: Path) -> None:
        scanner = ClamdScanner(timeout_seconds=3)
        with patch("piiscan.collaborators.antivirus.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(cmd="clamdscan", timeout=3)
            with pytest.raises(AntivirusError, match="timed out after 3s"):
                scanner.scan(tmp_path / "a.zip")

    def test_missing_executable(self, tmp_path: Path) -> None:
        scanner = ClamdScanner(executable="/nope/clamdscan")
        with patch("piiscan.collaborators.antivirus.subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("no such file")
            with pytest.raises(AntivirusError, match="Failed to run"):
                scanner.scan(tmp_path / "a.zip")


class TestParseSignatures:
    def test_multiple_lines(self) -> None:
        output = "stream: Win.Test.A FOUND\nstream: OK\nstream: Doc.Macro.B FOUND\n"

        assert parse_signatures(output) == ["Win.Test.A", "Doc.Macro.B"]

    def test_no_matches(self) -> None:
        assert parse_signatures("") == []


class TestNoopScanner:
    def test_always_clean(self, tmp_path: Path) -> None:
        assert NoopScanner().scan(tmp_path / "a.zip").is_infected is False
