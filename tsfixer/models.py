"""
Core data model shared by the parser, the import rewriters and the orchestrator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


# ============================================================================
# ENUMS
# ============================================================================

class Category(Enum):
    """Coarse category of a compiler diagnostic."""
    TYPE_MISMATCH = "type-mismatch"
    NULL_UNDEFINED = "null-undefined"
    MISSING_PROPERTY = "missing-property"
    UNKNOWN_IDENTIFIER = "unknown-identifier"
    SYNTAX_ERROR = "syntax-error"
    IMPORT_EXPORT = "import-export"
    INVALID_ARGUMENTS = "invalid-arguments"
    FUNCTION_RETURN = "function-return"
    OBJECT_PROPERTY = "object-property"
    ASYNC_AWAIT = "async-await"
    OTHER = "other"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


class ParseTier(Enum):
    """Which parser tier produced a diagnostic."""
    PRIMARY = "primary"        # file(line,col): error TSxxxx: message
    ALTERNATE = "alternate"    # file:line:col - error TSxxxx: message
    SUMMARY = "summary"        # "Errors  Files" table rows
    SCAN = "scan"              # bare *.ts / *.tsx paths in the output


PRECISE_TIERS = frozenset({ParseTier.PRIMARY, ParseTier.ALTERNATE})


class BindingKind(Enum):
    DEFAULT = "default"        # import X from 'm'
    NAMESPACE = "namespace"    # import * as X from 'm'
    NAMED = "named"            # import { a } from 'm' / const { a } = require('m')
    REQUIRE = "require"        # const X = require('m')


class ImportStyle(Enum):
    ES = "es"
    COMMONJS = "commonjs"


class FixState(Enum):
    IDLE = "idle"
    CHECKING = "checking"
    FIXING = "fixing"
    REVERIFYING = "reverifying"
    DONE = "done"


class VerificationOutcome(Enum):
    """How the run ended, as far as the compiler is concerned."""
    PASSED = "passed"              # no diagnostics left
    IMPROVED = "improved"          # fewer diagnostics after fixing
    UNCHANGED = "unchanged"        # same count after fixing
    REGRESSION = "regression"      # more diagnostics after fixing
    NOT_VERIFIED = "not_verified"  # fixing disabled or dry run
    UNPARSED = "unparsed"          # compiler failed but nothing could be parsed


# ============================================================================
# DIAGNOSTICS
# ============================================================================

@dataclass(frozen=True)
class Diagnostic:
    """One compiler-reported issue."""
    file: str                     # Normalized, forward slashes, no drive letter
    line: int                     # 1-indexed
    column: int                   # 1-indexed
    code: str                     # e.g. "TS2322"
    message: str
    category: Category
    severity: Severity = Severity.ERROR
    snippet: Optional[str] = None
    caret_position: Optional[int] = None
    tier: ParseTier = ParseTier.PRIMARY

    @property
    def from_summary(self) -> bool:
        return self.tier is ParseTier.SUMMARY

    @property
    def from_scanning(self) -> bool:
        return self.tier is ParseTier.SCAN

    @property
    def is_precise(self) -> bool:
        """True when the diagnostic carries real line/column evidence."""
        return self.tier in PRECISE_TIERS

    @property
    def sort_key(self) -> Tuple[str, int, int]:
        return (self.file, self.line, self.column)

    def to_dict(self) -> dict:
        data = {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "tier": self.tier.value,
        }
        if self.snippet is not None:
            data["snippet"] = self.snippet
        return data


# ============================================================================
# IMPORT MODEL
# ============================================================================

@dataclass(frozen=True)
class ImportBinding:
    """One name introduced by an import or require."""
    local_name: str
    imported_name: Optional[str] = None   # Name in the source module (named only)
    kind: BindingKind = BindingKind.NAMED
    is_type_only: bool = False            # `type` prefix on this binding

    @property
    def text(self) -> str:
        """Source text of a named binding inside braces."""
        if self.kind is not BindingKind.NAMED:
            return self.local_name
        prefix = "type " if self.is_type_only else ""
        if self.imported_name and self.imported_name != self.local_name:
            return f"{prefix}{self.imported_name} as {self.local_name}"
        return f"{prefix}{self.local_name}"

    @property
    def destructured_text(self) -> str:
        """Source text of a named binding in a CommonJS destructuring."""
        if self.imported_name and self.imported_name != self.local_name:
            return f"{self.imported_name}: {self.local_name}"
        return self.local_name


@dataclass(frozen=True)
class ImportStatement:
    """One single-line import or require statement."""
    module_specifier: str
    bindings: Tuple[ImportBinding, ...]
    source_line: int              # 1-indexed
    raw_text: str                 # Full line as read, without newline or BOM
    style: ImportStyle
    is_type_only: bool = False    # `import type ...` on the whole clause
    quote: str = "'"
    has_semicolon: bool = True
    indent: str = ""
    keyword: Optional[str] = None  # const / let / var for CommonJS
    trailing: str = ""            # `// ...` comment after the statement, as written

    @property
    def default_binding(self) -> Optional[ImportBinding]:
        for binding in self.bindings:
            if binding.kind in (BindingKind.DEFAULT, BindingKind.REQUIRE):
                return binding
        return None

    @property
    def namespace_binding(self) -> Optional[ImportBinding]:
        for binding in self.bindings:
            if binding.kind is BindingKind.NAMESPACE:
                return binding
        return None

    @property
    def named_bindings(self) -> List[ImportBinding]:
        return [b for b in self.bindings if b.kind is BindingKind.NAMED]

    @property
    def local_names(self) -> List[str]:
        return [b.local_name for b in self.bindings]

    @property
    def group_key(self) -> Tuple[ImportStyle, bool]:
        """Statements are only merged with others sharing this key."""
        return (self.style, self.is_type_only)


# Per-file map: module specifier -> statements importing it, in source order
ImportTable = Dict[str, List[ImportStatement]]


@dataclass(frozen=True)
class UnusedBinding:
    """Evidence that one binding is unused, certified by an external tool."""
    line: int
    name: Optional[str]           # None: every binding on the line is unused
    column: int = 0
    file: Optional[str] = None
    message: str = ""
    source: str = "eslint"


# ============================================================================
# RESULTS
# ============================================================================

@dataclass
class FixResult:
    """Outcome of fixing one file."""
    file: str
    fixed: bool = False
    change_count: int = 0
    message: str = ""
    error: Optional[str] = None
    actions: List[str] = field(default_factory=list)
    diff: Optional[str] = None    # Unified diff, populated on dry runs

    @property
    def skipped(self) -> bool:
        return not self.fixed and self.error is None

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "fixed": self.fixed,
            "change_count": self.change_count,
            "message": self.message,
            "error": self.error,
            "actions": list(self.actions),
        }


@dataclass
class BatchResult:
    """Aggregate of every per-file FixResult in one fix pass."""
    total: int = 0
    processed: int = 0
    fixed: int = 0
    failed: int = 0
    skipped: int = 0
    details: List[FixResult] = field(default_factory=list)

    def add(self, result: FixResult):
        self.processed += 1
        if result.error is not None:
            self.failed += 1
        elif result.fixed:
            self.fixed += 1
        else:
            self.skipped += 1
        self.details.append(result)

    @property
    def change_count(self) -> int:
        return sum(r.change_count for r in self.details)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "processed": self.processed,
            "fixed": self.fixed,
            "failed": self.failed,
            "skipped": self.skipped,
            "details": [r.to_dict() for r in self.details],
        }


@dataclass
class VerificationResult:
    """Comparison of the diagnostic count before and after fixing."""
    outcome: VerificationOutcome
    initial_count: int
    final_count: Optional[int] = None

    @property
    def delta(self) -> Optional[int]:
        if self.final_count is None:
            return None
        return self.final_count - self.initial_count

    @property
    def is_regression(self) -> bool:
        return self.outcome is VerificationOutcome.REGRESSION


@dataclass
class RunReport:
    """Everything one orchestration cycle produced."""
    started_at: datetime
    finished_at: Optional[datetime] = None
    initial_diagnostics: List[Diagnostic] = field(default_factory=list)
    final_diagnostics: Optional[List[Diagnostic]] = None
    batch: Optional[BatchResult] = None
    verification: Optional[VerificationResult] = None
    states: List[FixState] = field(default_factory=list)
    dry_run: bool = False

    @property
    def outcome(self) -> VerificationOutcome:
        if self.verification is None:
            return VerificationOutcome.NOT_VERIFIED
        return self.verification.outcome

    @property
    def success(self) -> bool:
        return self.outcome is VerificationOutcome.PASSED

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()
