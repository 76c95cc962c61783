"""
Diagnostic parser for TypeScript compiler output.

The compiler's text format depends on the tsc version, the shell, --pretty
and the OS path separator, so parsing is a ladder of tiers. A tier only runs
when every tier above it produced nothing:

1. Primary:   src/foo.ts(10,5): error TS2322: message
2. Alternate: src/foo.ts:10:5 - error TS2322: message
3. Summary:   "Errors  Files" table rows such as "     7  src/foo.ts:12"
4. Scan:      any *.ts / *.tsx path mentioned anywhere in the output

Tiers 3 and 4 yield low-confidence placeholder diagnostics (tier recorded on
each Diagnostic) so that downstream fixers know there is no line evidence.
Parsing never raises; a failing tier is logged and the ladder moves on.
"""

import logging
import re
from collections import Counter, defaultdict
from dataclasses import replace
from typing import Dict, List, Optional

from tsfixer.categorize import categorize, error_code_details
from tsfixer.models import Category, Diagnostic, ParseTier, Severity

logger = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

PRIMARY_PATTERN = re.compile(
    r'^(?P<file>.+?)\((?P<line>\d+),(?P<column>\d+)\):\s+'
    r'(?P<severity>error|warning)\s+(?P<code>TS\d+):\s*(?P<message>.+?)\s*$'
)

ALTERNATE_PATTERN = re.compile(
    r'^(?P<file>.+?):(?P<line>\d+):(?P<column>\d+)\s+-\s+'
    r'(?P<severity>error|warning)\s+(?P<code>TS\d+):\s*(?P<message>.+?)\s*$'
)

SUMMARY_HEADER = re.compile(r'Errors\s{2,}Files')
SUMMARY_ROW = re.compile(r'^\s*(?P<count>\d+)\s+(?P<file>.+?):(?P<line>\d+)\s*$')
SUMMARY_SINGLE_FILE = re.compile(
    r'Found\s+(?P<count>\d+)\s+errors?\s+in\s+the\s+same\s+file,\s+starting\s+at:\s+'
    r'(?P<file>.+?):(?P<line>\d+)\s*$'
)

SCAN_PATTERN = re.compile(
    r'(?<![\w@./\\:-])(?P<path>(?:[A-Za-z]:)?[\\/]?(?:[\w@.-]+[\\/])*[\w.-]+\.tsx?)(?!\w|\.\w)'
)

ANSI_ESCAPE = re.compile(r'\x1b\[[0-9;]*[A-Za-z]')
DRIVE_PREFIX = re.compile(r'^[A-Za-z]:/')
GUTTER = re.compile(r'^\s*\d+\s+')
CARET_LINE = re.compile(r'^\s*[~^]+\s*$')

GENERIC_CODE = 'TS0000'
SUMMARY_MESSAGE = 'Issue reported in compiler summary without position details'
SCAN_MESSAGE = 'TypeScript issue detected without specific error information'

# Paths the raw scan should never report
SCAN_IGNORED = ('node_modules/',)


# ============================================================================
# PATH NORMALIZATION
# ============================================================================

def normalize_path(file_path: str, project_root: Optional[str] = None) -> str:
    """Normalize a diagnostic path so the same file compares equal across OSes.

    Backslashes become forward slashes, a drive-letter prefix is dropped, a
    leading './' is dropped, and when project_root is given its normalized
    form is stripped from the front.
    """
    normalized = file_path.strip().replace('\\', '/')
    normalized = DRIVE_PREFIX.sub('', normalized)

    if project_root:
        root = normalize_path(str(project_root)).rstrip('/')
        if root and normalized == root:
            normalized = ''
        elif root and normalized.startswith(root + '/'):
            normalized = normalized[len(root) + 1:]

    while normalized.startswith('./'):
        normalized = normalized[2:]

    return normalized


# ============================================================================
# PARSER
# ============================================================================

class DiagnosticParser:
    """Turns raw compiler text into a sorted list of Diagnostics."""

    def __init__(self, project_root: Optional[str] = None, extract_snippets: bool = True):
        self.project_root = project_root
        self.extract_snippets = extract_snippets

    def parse(self, raw_output: str) -> List[Diagnostic]:
        if not raw_output or not raw_output.strip():
            return []

        text = ANSI_ESCAPE.sub('', raw_output).replace('\r\n', '\n').replace('\r', '\n')
        lines = text.split('\n')

        tiers = [
            (ParseTier.PRIMARY, lambda: self._parse_structured(lines, PRIMARY_PATTERN, ParseTier.PRIMARY)),
            (ParseTier.ALTERNATE, lambda: self._parse_structured(lines, ALTERNATE_PATTERN, ParseTier.ALTERNATE)),
            (ParseTier.SUMMARY, lambda: self._parse_summary(lines)),
            (ParseTier.SCAN, lambda: self._scan_paths(text)),
        ]

        for tier, parse_tier in tiers:
            try:
                diagnostics = parse_tier()
            except Exception as e:  # ParseFailure: degrade to the next tier
                logger.warning(f"Failed to parse compiler output ({tier.value} tier): {e}")
                continue

            if diagnostics:
                if tier not in (ParseTier.PRIMARY, ParseTier.ALTERNATE):
                    logger.info(
                        f"No structured diagnostics found, using {tier.value} tier "
                        f"({len(diagnostics)} files)"
                    )
                return sorted(diagnostics, key=lambda d: d.sort_key)

        logger.warning("Compiler output contained no recognizable diagnostics")
        return []

    def _normalize(self, file_path: str) -> str:
        return normalize_path(file_path, self.project_root)

    def _parse_structured(self, lines: List[str], pattern: re.Pattern, tier: ParseTier) -> List[Diagnostic]:
        diagnostics = []
        for index, line in enumerate(lines):
            match = pattern.match(line.strip())
            if not match:
                continue

            code = match.group('code')
            message = match.group('message')
            diagnostic = Diagnostic(
                file=self._normalize(match.group('file')),
                line=int(match.group('line')),
                column=int(match.group('column')),
                code=code,
                message=message,
                category=categorize(code, message),
                severity=Severity(match.group('severity')),
                tier=tier,
            )

            if self.extract_snippets:
                diagnostic = self._attach_snippet(diagnostic, lines, index, pattern)

            diagnostics.append(diagnostic)
        return diagnostics

    def _attach_snippet(
        self,
        diagnostic: Diagnostic,
        lines: List[str],
        index: int,
        pattern: re.Pattern
    ) -> Diagnostic:
        """Attach the source line that precedes a caret/tilde marker, if any."""
        snippet = None
        for follower in lines[index + 1:index + 5]:
            if pattern.match(follower.strip()):
                break
            if CARET_LINE.match(follower) and snippet is not None:
                caret = min(
                    pos for pos in (follower.find('^'), follower.find('~')) if pos >= 0
                )
                return replace(diagnostic, snippet=snippet, caret_position=caret)
            if follower.strip():
                snippet = GUTTER.sub('', follower).strip()
        return diagnostic

    def _parse_summary(self, lines: List[str]) -> List[Diagnostic]:
        seen = set()
        diagnostics = []

        def add(file_path: str, line: int, count: int):
            normalized = self._normalize(file_path)
            if normalized in seen:
                return
            seen.add(normalized)
            diagnostics.append(Diagnostic(
                file=normalized,
                line=line,
                column=1,
                code=GENERIC_CODE,
                message=f"{SUMMARY_MESSAGE} ({count} errors)",
                category=Category.OTHER,
                tier=ParseTier.SUMMARY,
            ))
            logger.debug(f"Added file from summary: {normalized} ({count} errors)")

        header_index = next(
            (i for i, line in enumerate(lines) if SUMMARY_HEADER.search(line)), None
        )
        if header_index is not None:
            for line in lines[header_index + 1:]:
                if not line.strip():
                    continue
                match = SUMMARY_ROW.match(line)
                if match:
                    add(match.group('file'), int(match.group('line')), int(match.group('count')))

        for line in lines:
            match = SUMMARY_SINGLE_FILE.search(line.strip())
            if match:
                add(match.group('file'), int(match.group('line')), int(match.group('count')))

        return diagnostics

    def _scan_paths(self, text: str) -> List[Diagnostic]:
        paths: Dict[str, None] = {}
        for match in SCAN_PATTERN.finditer(text):
            normalized = self._normalize(match.group('path'))
            if not normalized or any(part in normalized for part in SCAN_IGNORED):
                continue
            paths.setdefault(normalized, None)

        return [
            Diagnostic(
                file=path,
                line=1,
                column=1,
                code=GENERIC_CODE,
                message=SCAN_MESSAGE,
                category=Category.OTHER,
                tier=ParseTier.SCAN,
            )
            for path in paths
        ]


def parse_diagnostics(
    raw_output: str,
    project_root: Optional[str] = None,
    extract_snippets: bool = True
) -> List[Diagnostic]:
    """Parse compiler output. Never raises; unparsable text yields []."""
    return DiagnosticParser(project_root, extract_snippets).parse(raw_output)


# ============================================================================
# GROUPING & STATISTICS
# ============================================================================

GROUP_KEYS = ('file', 'category', 'code')


def group_diagnostics(diagnostics: List[Diagnostic], by: str = 'file') -> Dict[str, List[Diagnostic]]:
    """Group diagnostics by file, category or code, keeping input order."""
    if by not in GROUP_KEYS:
        logger.warning(f"Invalid group key: {by}. Using 'file' instead.")
        by = 'file'

    grouped: Dict[str, List[Diagnostic]] = defaultdict(list)
    for diagnostic in diagnostics:
        key = getattr(diagnostic, by)
        if isinstance(key, Category):
            key = key.value
        grouped[key].append(diagnostic)
    return dict(grouped)


def count_by_category(diagnostics: List[Diagnostic]) -> Dict[str, int]:
    return dict(Counter(d.category.value for d in diagnostics))


def most_common_codes(diagnostics: List[Diagnostic], limit: int = 5) -> List[dict]:
    """Most frequent codes with their details, highest count first."""
    counts = Counter(d.code for d in diagnostics)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        {**error_code_details(code), 'count': count}
        for code, count in ranked[:limit]
    ]
