"""Exception types and warning records raised or collected while fixing."""

from dataclasses import dataclass
from typing import Tuple


class FixerError(Exception):
    """Base class for tsfixer errors."""


class CompilerInvocationError(FixerError):
    """The type checker could not be started or did not finish.

    This is the only failure that aborts a whole run.
    """


class LinterInvocationError(FixerError):
    """The linter could not be run or its JSON output could not be read."""


class FileIOError(FixerError):
    """Reading or writing a single source file failed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class AmbiguousMergeWarning:
    """Several distinct default/namespace names were merged; only the first survives."""
    module: str
    kind: str
    kept: str
    dropped: Tuple[str, ...]

    def __str__(self) -> str:
        return (
            f"Multiple {self.kind} imports for '{self.module}': "
            f"{', '.join((self.kept,) + self.dropped)}. Using {self.kept}"
        )
