"""
Shared fixtures: sample compiler output and fake collaborators.

The fakes honour the same run() contract as TypeScriptCompiler and
EslintLinter, so the orchestrator can be driven end to end without spawning
tsc or eslint.
"""

import sys
from pathlib import Path
from typing import List, Optional

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tsfixer.collaborators import CompilerRun  # noqa: E402
from tsfixer.config import FixerConfig  # noqa: E402
from tsfixer.errors import LinterInvocationError  # noqa: E402
from tsfixer.models import UnusedBinding  # noqa: E402


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class FakeCompiler:
    """Returns canned outputs, one per run() call; the last one repeats."""

    def __init__(self, *outputs: str, success: Optional[bool] = None):
        self.outputs = list(outputs) or ['']
        self.success = success
        self.calls = 0

    def run(self) -> CompilerRun:
        output = self.outputs[min(self.calls, len(self.outputs) - 1)]
        self.calls += 1
        success = self.success if self.success is not None else not output.strip()
        return CompilerRun(output=output, success=success, returncode=0 if success else 2)


class FakeLinter:
    """Returns fixed unused-binding records, or raises when told to fail."""

    def __init__(self, records: Optional[List[UnusedBinding]] = None, fail: bool = False):
        self.records = records or []
        self.fail = fail
        self.calls: List[List[str]] = []

    def run(self, files):
        self.calls.append(list(files))
        if self.fail:
            raise LinterInvocationError("eslint: command not found")
        return list(self.records)


# =============================================================================
# FIXTURES
# =============================================================================

PRIMARY_OUTPUT = """\
src/app.ts(3,10): error TS6133: 'unusedHelper' is declared but its value is never read.
src/app.ts(12,5): error TS2322: Type 'string' is not assignable to type 'number'.
src/lib/util.ts(7,1): error TS2304: Cannot find name 'foo'.

Found 3 errors in 2 files.
"""

ALTERNATE_OUTPUT = """\
src/app.ts:12:5 - error TS2322: Type 'string' is not assignable to type 'number'.

12     const count: number = 'five';
       ~~~~~

src/lib/util.ts:7:1 - error TS2304: Cannot find name 'foo'.

7 foo();
  ~~~
"""

SUMMARY_OUTPUT = """\
Found 9 errors in 2 files.

Errors  Files
     7  src/app.ts:12
     2  src/lib/util.ts:7
"""

SCAN_OUTPUT = """\
Something went wrong while checking src/app.ts.
See also C:\\project\\src\\lib\\util.tsx and node_modules/pkg/index.d.ts
"""


@pytest.fixture
def project(tmp_path):
    """A project root with a tsconfig.json and an empty src/ directory."""
    (tmp_path / 'tsconfig.json').write_text('{ "compilerOptions": {} }', encoding='utf-8')
    (tmp_path / 'src').mkdir()
    return tmp_path


@pytest.fixture
def make_config(project):
    def _make(**overrides) -> FixerConfig:
        overrides.setdefault('max_workers', 2)
        return FixerConfig(project_root=project, **overrides)
    return _make


def write_source(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path
