"""
Adapters around the two external tools: the TypeScript compiler and ESLint.

Both are blocking subprocesses. The compiler's combined stdout+stderr is
handed to the diagnostic parser untouched; ESLint is asked for JSON and
reduced to UnusedBinding records.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from tsfixer.errors import CompilerInvocationError, LinterInvocationError
from tsfixer.models import UnusedBinding
from tsfixer.unused import parse_eslint_output

logger = logging.getLogger(__name__)


DEFAULT_COMPILER_COMMAND = 'npx tsc --noEmit'
DEFAULT_LINTER_COMMAND = 'npx eslint'
DEFAULT_TIMEOUT = 300

UNUSED_RULE_ARGS = ['--rule', '@typescript-eslint/no-unused-vars: error']


@dataclass
class CompilerRun:
    """Raw result of one compiler invocation."""
    output: str
    success: bool
    returncode: int
    command: List[str] = field(default_factory=list)


class TypeScriptCompiler:
    """Runs `tsc --noEmit` (or a configured equivalent) in the project root."""

    def __init__(
        self,
        project_root: Path,
        command: str = DEFAULT_COMPILER_COMMAND,
        tsconfig_path: Optional[Path] = None,
        timeout: int = DEFAULT_TIMEOUT
    ):
        self.project_root = Path(project_root)
        self.command = command
        self.tsconfig_path = tsconfig_path
        self.timeout = timeout

    def build_command(self) -> List[str]:
        args = shlex.split(self.command)
        if self.tsconfig_path and '--project' not in args and '-p' not in args:
            args += ['--project', str(self.tsconfig_path)]
        return args

    def run(self) -> CompilerRun:
        args = self.build_command()
        logger.info(f"Running type check: {' '.join(args)}")

        try:
            result = subprocess.run(
                args,
                cwd=str(self.project_root),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError as e:
            raise CompilerInvocationError(f"Compiler not found: {args[0]} ({e})") from e
        except subprocess.TimeoutExpired as e:
            raise CompilerInvocationError(f"Compiler timed out after {self.timeout}s") from e
        except OSError as e:
            raise CompilerInvocationError(f"Failed to run compiler: {e}") from e

        output = (result.stdout or '') + '\n' + (result.stderr or '')
        logger.debug(f"Compiler exited with {result.returncode}")
        return CompilerRun(
            output=output,
            success=result.returncode == 0,
            returncode=result.returncode,
            command=args,
        )


class EslintLinter:
    """Runs ESLint with the unused-vars rule and returns unused-binding records."""

    def __init__(
        self,
        project_root: Path,
        command: str = DEFAULT_LINTER_COMMAND,
        include_test_files: bool = False,
        timeout: int = DEFAULT_TIMEOUT
    ):
        self.project_root = Path(project_root)
        self.command = command
        self.include_test_files = include_test_files
        self.timeout = timeout

    def build_command(self, files: Sequence[str]) -> List[str]:
        return shlex.split(self.command) + ['--format', 'json'] + UNUSED_RULE_ARGS + list(files)

    def run(self, files: Sequence[str]) -> List[UnusedBinding]:
        if not files:
            return []

        args = self.build_command(files)
        logger.debug(f"Running command: {' '.join(args)}")

        try:
            result = subprocess.run(
                args,
                cwd=str(self.project_root),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError as e:
            raise LinterInvocationError(f"Linter not found: {args[0]} ({e})") from e
        except subprocess.TimeoutExpired as e:
            raise LinterInvocationError(f"Linter timed out after {self.timeout}s") from e
        except OSError as e:
            raise LinterInvocationError(f"Failed to run linter: {e}") from e

        # Exit code 1 only means lint problems were found
        if result.returncode not in (0, 1) and not result.stdout.strip():
            raise LinterInvocationError(
                f"Linter exited with {result.returncode}: {result.stderr.strip()[:500]}"
            )

        records = parse_eslint_output(
            result.stdout,
            project_root=str(self.project_root),
            include_test_files=self.include_test_files
        )
        logger.info(f"Linter reported {len(records)} unused bindings")
        return records
