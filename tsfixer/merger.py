"""
Duplicate-import merger.

For every module imported by two or more statements with the same style
(ES / CommonJS) and the same clause-level type-only flag, the first statement
is rewritten to carry the union of all their bindings and the later ones are
deleted. Type-only and value imports are never combined.

Conflicts: a statement can hold one default (or whole-module require) name
and one namespace alias. When the duplicates disagree, the first name seen
wins and an AmbiguousMergeWarning is recorded. Unions that no single
statement can express (a namespace alias next to named bindings, a whole
require next to a destructuring, or a type-only default next to named
bindings) are left unmerged.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Set, Tuple

from tsfixer.errors import AmbiguousMergeWarning
from tsfixer.import_model import apply_line_edits, build_import_table, render_statement
from tsfixer.models import BindingKind, ImportBinding, ImportStatement, ImportStyle, ImportTable

logger = logging.getLogger(__name__)


@dataclass
class MergeOutcome:
    """Line edits produced by a merge, not yet applied to any text."""
    replacements: Dict[int, str] = field(default_factory=dict)
    deletions: Set[int] = field(default_factory=set)
    redirects: Dict[int, int] = field(default_factory=dict)   # deleted line -> line it merged into
    merged_count: int = 0                                      # statements removed
    merged_modules: List[str] = field(default_factory=list)
    warnings: List[AmbiguousMergeWarning] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.replacements or self.deletions)

    def apply(self, file_text: str) -> str:
        if not self.changed:
            return file_text
        return apply_line_edits(file_text, self.replacements, self.deletions)

    def remap_line(self, line: int) -> int:
        """Where a line of the original text ends up after apply()."""
        target = self.redirects.get(line, line)
        shift = sum(1 for deleted in self.deletions if deleted < target)
        return target - shift


def _first_wins(
    module: str,
    kind: str,
    names: List[str],
    warnings: List[AmbiguousMergeWarning]
) -> Optional[str]:
    distinct = list(dict.fromkeys(names))
    if not distinct:
        return None
    if len(distinct) > 1:
        warning = AmbiguousMergeWarning(module, kind, distinct[0], tuple(distinct[1:]))
        warnings.append(warning)
        logger.warning(str(warning))
    return distinct[0]


def _union_named(statements: List[ImportStatement]) -> List[ImportBinding]:
    """Named bindings deduplicated by local name and sorted by it."""
    merged: Dict[str, ImportBinding] = {}
    for statement in statements:
        for binding in statement.named_bindings:
            existing = merged.get(binding.local_name)
            if existing is None:
                merged[binding.local_name] = binding
            elif existing.is_type_only and not binding.is_type_only:
                # A value binding also provides the type
                merged[binding.local_name] = binding
    return [merged[name] for name in sorted(merged)]


def merge_group(
    module: str,
    statements: List[ImportStatement]
) -> Tuple[Optional[List[ImportBinding]], List[AmbiguousMergeWarning]]:
    """Union of bindings for statements sharing module, style and type-only flag.

    Returns (None, []) when the union cannot be written as one statement.
    """
    warnings: List[AmbiguousMergeWarning] = []
    style = statements[0].style
    is_type_only = statements[0].is_type_only

    named = _union_named(statements)

    if style is ImportStyle.COMMONJS:
        whole_names = [s.default_binding.local_name for s in statements if s.default_binding]
        if whole_names and named:
            return None, []
        whole = _first_wins(module, 'require', whole_names, warnings)
        if whole:
            return [ImportBinding(local_name=whole, kind=BindingKind.REQUIRE)], warnings
        return named, warnings

    default_names = [s.default_binding.local_name for s in statements if s.default_binding]
    namespace_names = [s.namespace_binding.local_name for s in statements if s.namespace_binding]

    if namespace_names and named:
        return None, []
    if is_type_only and default_names and (named or namespace_names):
        return None, []

    bindings = []
    default = _first_wins(module, 'default', default_names, warnings)
    if default:
        bindings.append(ImportBinding(local_name=default, kind=BindingKind.DEFAULT, is_type_only=is_type_only))
    namespace = _first_wins(module, 'namespace', namespace_names, warnings)
    if namespace:
        bindings.append(ImportBinding(local_name=namespace, kind=BindingKind.NAMESPACE, is_type_only=is_type_only))
    bindings.extend(named)
    return bindings, warnings


def merge(table: ImportTable) -> MergeOutcome:
    """Plan the rewrites that collapse duplicate imports in one file's table."""
    outcome = MergeOutcome()

    for module, statements in table.items():
        if len(statements) < 2:
            continue

        groups: Dict[Tuple[ImportStyle, bool], List[ImportStatement]] = {}
        for statement in statements:
            groups.setdefault(statement.group_key, []).append(statement)

        for (style, is_type_only), group in groups.items():
            if len(group) < 2:
                continue

            bindings, warnings = merge_group(module, group)
            if bindings is None:
                logger.info(
                    f"Skipping merge of {len(group)} imports for '{module}': "
                    f"bindings cannot be combined into one statement"
                )
                continue

            comments = {s.trailing.strip() for s in group if s.trailing}
            if len(comments) > 1:
                logger.info(
                    f"Skipping merge of {len(group)} imports for '{module}': "
                    f"they carry different trailing comments"
                )
                continue

            first = group[0]
            template = first
            if comments and not first.trailing:
                template = replace(first, trailing=next(s.trailing for s in group if s.trailing))
            merged_text = render_statement(template, bindings)
            if merged_text != first.raw_text:
                outcome.replacements[first.source_line] = merged_text
            for later in group[1:]:
                outcome.deletions.add(later.source_line)
                outcome.redirects[later.source_line] = first.source_line

            outcome.merged_count += len(group) - 1
            outcome.merged_modules.append(module)
            outcome.warnings.extend(warnings)
            logger.debug(
                f"Merging {len(group)} {style.value}{' type' if is_type_only else ''} "
                f"imports for '{module}' into line {first.source_line}"
            )

    return outcome


def merge_text(file_text: str) -> Tuple[str, MergeOutcome]:
    """Build a fresh import table for file_text, merge, and apply the edits."""
    outcome = merge(build_import_table(file_text))
    return outcome.apply(file_text), outcome
