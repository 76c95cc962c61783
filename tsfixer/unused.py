"""
Unused-import remover.

Never decides on its own that a binding is unused. It executes removals that
ESLint (no-unused-vars) or the compiler (TS6133 / TS6192) already reported,
so its false-positive rate is bounded by theirs. A binding that is not named
in the evidence is left byte-for-byte as it was.
"""

import json
import logging
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from tsfixer.diagnostics import normalize_path
from tsfixer.errors import LinterInvocationError
from tsfixer.import_model import (
    apply_line_edits,
    build_import_table,
    remove_empty_imports,
    render_statement,
    statements_by_line,
)
from tsfixer.models import BindingKind, Diagnostic, ImportStatement, UnusedBinding

logger = logging.getLogger(__name__)


UNUSED_RULES = {'no-unused-vars', '@typescript-eslint/no-unused-vars'}

# Compiler codes that certify an unused declaration
UNUSED_CODES = {'TS6133', 'TS6192', 'TS6196', 'TS6198'}

TEST_FILE_MARKERS = ('.test.', '.spec.', '/__tests__/')

QUOTED_NAME = re.compile(r"'([^']+)'|\"([^\"]+)\"")
BRACES = re.compile(r'\{[^{}]*\}')


# ============================================================================
# EVIDENCE
# ============================================================================

def extract_binding_name(message: str) -> Optional[str]:
    """First quoted token of a linter/compiler message ("'X' is defined but never used")."""
    match = QUOTED_NAME.search(message or '')
    if not match:
        return None
    return match.group(1) or match.group(2)


def is_test_file(path: str) -> bool:
    normalized = '/' + path.replace('\\', '/')
    return any(marker in normalized for marker in TEST_FILE_MARKERS)


def parse_eslint_output(
    raw_output: str,
    project_root: Optional[str] = None,
    include_test_files: bool = False
) -> List[UnusedBinding]:
    """Read `eslint --format json` output into UnusedBinding records.

    Raises LinterInvocationError when the text is not ESLint JSON.
    """
    try:
        results = json.loads(raw_output or '[]')
    except json.JSONDecodeError as e:
        raise LinterInvocationError(f"Failed to parse ESLint output: {e}") from e

    if not isinstance(results, list):
        raise LinterInvocationError("Unexpected ESLint output: top level is not a list")

    records = []
    for file_result in results:
        file_path = normalize_path(file_result.get('filePath', ''), project_root)
        if not include_test_files and is_test_file(file_path):
            continue

        for message in file_result.get('messages', []):
            if message.get('ruleId') not in UNUSED_RULES:
                continue
            text = message.get('message', '')
            name = extract_binding_name(text)
            if not name:
                continue
            records.append(UnusedBinding(
                line=int(message.get('line', 0)),
                column=int(message.get('column', 0)),
                name=name,
                file=file_path,
                message=text,
                source='eslint',
            ))
    return records


def unused_from_diagnostics(diagnostics: Iterable[Diagnostic]) -> List[UnusedBinding]:
    """Unused-binding evidence carried by precise compiler diagnostics.

    TS6192 ("All imports in import declaration are unused") without a quoted
    name marks the whole statement on that line.
    """
    records = []
    for diagnostic in diagnostics:
        if diagnostic.code not in UNUSED_CODES or not diagnostic.is_precise:
            continue
        name = extract_binding_name(diagnostic.message)
        if name is None and diagnostic.code != 'TS6192':
            continue
        records.append(UnusedBinding(
            line=diagnostic.line,
            column=diagnostic.column,
            name=name,
            file=diagnostic.file,
            message=diagnostic.message,
            source='compiler',
        ))
    return records


# ============================================================================
# REMOVER
# ============================================================================

class UnusedImportRemover:
    """Removes certified-unused bindings from a file's import statements."""

    def __init__(self):
        self.removed: List[Tuple[int, str]] = []   # (line, local name)
        self.deleted_lines: Set[int] = set()

    def remove(self, file_text: str, unused_bindings: Iterable[UnusedBinding]) -> str:
        by_line: Dict[int, Set[Optional[str]]] = defaultdict(set)
        for record in unused_bindings:
            by_line[record.line].add(record.name)

        if not by_line:
            return file_text

        statements = statements_by_line(build_import_table(file_text))
        replacements: Dict[int, str] = {}
        deletions: Set[int] = set()

        for line_number, names in sorted(by_line.items()):
            statement = statements.get(line_number)
            if statement is None:
                logger.debug(f"Line {line_number}: no import statement, skipping {sorted(n for n in names if n)}")
                continue

            new_text, removed = self._remove_from_statement(statement, names)
            if not removed:
                continue

            self.removed.extend((line_number, name) for name in removed)
            if new_text is None:
                deletions.add(line_number)
            else:
                replacements[line_number] = new_text
            logger.debug(f"Line {line_number}: removed unused imports: {', '.join(removed)}")

        self.deleted_lines.update(deletions)
        text = apply_line_edits(file_text, replacements, deletions)
        return remove_empty_imports(text)

    def _remove_from_statement(
        self,
        statement: ImportStatement,
        names: Set[Optional[str]]
    ) -> Tuple[Optional[str], List[str]]:
        """Returns (new line or None to delete it, removed local names)."""
        if None in names:
            return None, statement.local_names

        removed = [b.local_name for b in statement.bindings if b.local_name in names]
        if not removed:
            return statement.raw_text, []

        remaining = [b for b in statement.bindings if b.local_name not in names]
        if not remaining:
            return None, removed

        lost_whole = any(b.kind is not BindingKind.NAMED for b in statement.bindings if b.local_name in names)
        lost_all_named = not any(b.kind is BindingKind.NAMED for b in remaining)
        if lost_whole or lost_all_named:
            # Brace group or leading name disappears entirely: rebuild the line
            return render_statement(statement, remaining), removed

        return self._rewrite_braces(statement, names), removed

    @staticmethod
    def _rewrite_braces(statement: ImportStatement, names: Set[Optional[str]]) -> str:
        """Drop items from the brace group, keeping every other item's text as written."""
        match = BRACES.search(statement.raw_text)
        items = [item.strip() for item in match.group(0)[1:-1].split(',') if item.strip()]
        kept_items = []
        for item, binding in zip(items, statement.named_bindings):
            if binding.local_name not in names:
                kept_items.append(item)
        new_braces = "{ " + ", ".join(kept_items) + " }"
        return statement.raw_text[:match.start()] + new_braces + statement.raw_text[match.end():]


def remove_unused(file_text: str, unused_bindings: Iterable[UnusedBinding]) -> str:
    """Remove the bindings listed in unused_bindings from file_text."""
    return UnusedImportRemover().remove(file_text, unused_bindings)
