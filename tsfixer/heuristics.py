"""
Heuristic fallback fixer.

Used only for files whose diagnostics came from the summary table or the raw
path scan, i.e. without line/column evidence. The one action it takes by
default is merging duplicate imports, which depends on nothing but the
file's own text.

Further text rewrites are opt-in rules, each enabled by name. They are not
applied unless asked for.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from tsfixer.errors import FileIOError
from tsfixer.fileio import read_source, unified_diff, write_source
from tsfixer.merger import merge_text
from tsfixer.models import Diagnostic, FixResult

logger = logging.getLogger(__name__)


# ============================================================================
# OPT-IN RULES
# ============================================================================

@dataclass(frozen=True)
class OptInRule:
    name: str
    description: str
    apply: Callable[[str], Tuple[str, int]]


CONSOLE_CALL = re.compile(r'^\s*console\.(?:log|debug|info)\((?P<args>.*)\)\s*;?\s*$')


def _is_single_call(args: str) -> bool:
    """True when args closes no paren it did not open (strings and templates skipped)."""
    depth = 0
    quote = None
    escaped = False
    for char in args:
        if quote:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in '\'"`':
            quote = char
        elif char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth < 0:
                return False
    return depth == 0 and quote is None


def remove_console_statements(file_text: str) -> Tuple[str, int]:
    """Delete lines that are exactly one complete console.log/debug/info call."""
    lines = file_text.split('\n')
    kept = []
    removed = 0
    for line in lines:
        match = CONSOLE_CALL.match(line.rstrip('\r'))
        if match and _is_single_call(match.group('args')):
            removed += 1
            continue
        kept.append(line)
    if not removed:
        return file_text, 0
    return '\n'.join(kept), removed


OPT_IN_RULES: Dict[str, OptInRule] = {
    'console-statements': OptInRule(
        name='console-statements',
        description='Delete single-line console.log/debug/info statements',
        apply=remove_console_statements,
    ),
}


def apply_rules(file_text: str, rule_names: Iterable[str]) -> Tuple[str, List[str]]:
    """Apply the named opt-in rules in order; returns (text, applied rule labels)."""
    applied = []
    for name in rule_names:
        rule = OPT_IN_RULES.get(name)
        if rule is None:
            logger.warning(f"Unknown heuristic rule: {name}")
            continue
        file_text, count = rule.apply(file_text)
        if count:
            applied.append(f"{name}:{count}")
    return file_text, applied


# ============================================================================
# FALLBACK FIXER
# ============================================================================

def needs_heuristics(diagnostics: Sequence[Diagnostic]) -> bool:
    """A file qualifies only when none of its diagnostics is precise."""
    return bool(diagnostics) and not any(d.is_precise for d in diagnostics)


def fix_text_with_heuristics(
    file_text: str,
    rules: Sequence[str] = (),
    merge_duplicates: bool = True
) -> Tuple[str, int, List[str]]:
    """Returns (new text, change count, actions)."""
    actions = []
    new_text = file_text
    change_count = 0
    if merge_duplicates:
        new_text, outcome = merge_text(file_text)
        change_count = outcome.merged_count
        if outcome.merged_count:
            actions.append('merge-duplicates')

    if rules:
        new_text, applied = apply_rules(new_text, rules)
        for label in applied:
            change_count += int(label.rsplit(':', 1)[1])
            actions.append(label)

    return new_text, change_count, actions


def apply_heuristics(
    file: str,
    diagnostics: Sequence[Diagnostic],
    path: Path,
    dry_run: bool = False,
    rules: Sequence[str] = (),
    merge_duplicates: bool = True
) -> FixResult:
    """Heuristic pass over one file. Only runs when no diagnostic is precise."""
    if not needs_heuristics(diagnostics):
        return FixResult(
            file=file,
            message='Precise diagnostics available, heuristics not applied',
        )

    logger.info(f"No specific errors identified in {file}, using heuristic-based cleanup")
    try:
        original = read_source(path)
        new_text, change_count, actions = fix_text_with_heuristics(original, rules, merge_duplicates)

        if new_text == original:
            logger.info(f"No changes needed for {file}")
            return FixResult(file=file, message='No changes needed')

        result = FixResult(
            file=file,
            fixed=True,
            change_count=change_count,
            actions=actions,
        )
        if dry_run:
            result.message = f"Changes identified (dry run): {', '.join(actions)}"
            result.diff = unified_diff(file, original, new_text)
        else:
            write_source(path, new_text)
            result.message = f"Heuristic cleanup: {', '.join(actions)}"
        return result
    except FileIOError as e:
        logger.error(f"Error processing {file}: {e}")
        return FixResult(file=file, error=str(e), message='File I/O failed')
