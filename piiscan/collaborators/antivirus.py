import re
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from piiscan.collaborators.exceptions import AntivirusError
from piiscan.config.settings import Settings
from piiscan.logging.logger import Log

# clamdscan prints "<path>: <signature> FOUND" per infected stream.
_FOUND_RE = re.compile(r":\s*(?P<signature>\S.*?)\s+FOUND\s*$")


@dataclass(frozen=True)
class ScanResult:
    is_infected: bool
    signatures: list[str] = field(default_factory=list)


class BaseVirusScanner(ABC):
    """Contract for antivirus adapters."""

    @abstractmethod
    def scan(self, path: Path) -> ScanResult:
        """Scan a file on disk.

        Raises:
            AntivirusError: if no verdict could be obtained.
        """


class NoopScanner(BaseVirusScanner):
    """Used when antivirus scanning is disabled; every file is clean."""

    def scan(self, path: Path) -> ScanResult:
        Log.debug(f"Antivirus disabled, skipping scan of {path.name}")
        return ScanResult(is_infected=False)


class ClamdScanner(BaseVirusScanner):
    """Streams a file to the ClamAV daemon through the clamdscan client."""

    def __init__(self, executable: str = "clamdscan", timeout_seconds: int = 30) -> None:
        self._executable = executable
        self._timeout_seconds = timeout_seconds

    def scan(self, path: Path) -> ScanResult:
        args = [self._executable, "--no-summary", "--fdpass", "--stream", str(path)]
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self._timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise AntivirusError(f"Scan timed out after {self._timeout_seconds}s") from exc
        except OSError as exc:
            raise AntivirusError(f"Failed to run {self._executable}: {exc}") from exc

        if completed.returncode == 0:
            return ScanResult(is_infected=False)
        if completed.returncode == 1:
            return ScanResult(is_infected=True, signatures=parse_signatures(completed.stdout))
        detail = completed.stderr.strip() or f"exit code {completed.returncode}"
        raise AntivirusError(f"{self._executable} failed: {detail}")


def parse_signatures(output: str) -> list[str]:
    signatures: list[str] = []
    for line in output.splitlines():
        match = _FOUND_RE.search(line)
        if match:
            signatures.append(match.group("signature"))
    return signatures


class VirusScannerFactory:
    @classmethod
    def create(cls, settings: Settings) -> BaseVirusScanner:
        if not settings.antivirus_enabled:
            return NoopScanner()
        return ClamdScanner(
            executable=settings.clamdscan_path,
            timeout_seconds=settings.antivirus_timeout_seconds,
        )
