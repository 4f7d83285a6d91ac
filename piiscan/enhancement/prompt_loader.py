from pathlib import Path

from piiscan.enhancement.exceptions import EnhancementError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def _read(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise EnhancementError(f"Failed to load {what}: {exc}") from exc


def load_prompt_template(path: Path | None = None) -> str:
    """Load the risk classification prompt template.

    Args:
        path: Path to the template file.
              Defaults to the bundled risk_prompt.txt.

    Returns:
        The raw template with {value}, {document_type}, {filename} and
        {context} placeholders.

    Raises:
        EnhancementError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "risk_prompt.txt"
    return _read(path, "prompt template")


def load_system_prompt(path: Path | None = None) -> str:
    """Load the system prompt; defaults to the bundled system_prompt.txt."""
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "system_prompt.txt"
    return _read(path, "system prompt").strip()
