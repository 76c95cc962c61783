"""Reading, writing and locating the source files the fixers edit."""

import difflib
import logging
from pathlib import Path
from typing import Iterable, Optional

from tsfixer.errors import FileIOError

logger = logging.getLogger(__name__)


def resolve_file(file_path: str, search_roots: Iterable[Path]) -> Optional[Path]:
    """Locate a diagnostic's file: as given, then under each search root."""
    candidate = Path(file_path)
    if candidate.is_absolute():
        return candidate if candidate.is_file() else None

    for root in search_roots:
        path = Path(root) / file_path
        if path.is_file():
            return path

    logger.error(f"File not found: {file_path} or any alternate path")
    return None


def read_source(path: Path) -> str:
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileIOError(str(path), f"cannot read: {e}") from e


def write_source(path: Path, content: str):
    try:
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
    except OSError as e:
        raise FileIOError(str(path), f"cannot write: {e}") from e


def unified_diff(file_label: str, before: str, after: str) -> str:
    return ''.join(difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=f"a/{file_label}",
        tofile=f"b/{file_label}",
    ))
