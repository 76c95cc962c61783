"""
Line-oriented model of a file's import and require statements.

This is pattern matching, not a grammar. Four shapes are recognized, each
on a single line:

    import X from 'm'                  (default)
    import * as X from 'm'             (namespace)
    import { a, type b, c as d } from 'm'
    import type { a } from 'm'         (whole clause type-only)
    const X = require('m')
    const { a, b: c } = require('m')

plus the combinations `import X, { a } from 'm'` and `import X, * as Y from 'm'`.
Anything else, including import clauses spread over several lines, is left
out of the table. Missing a statement is preferred over mis-reading one.
"""

import re
from typing import Dict, Iterable, List, Optional, Set

from tsfixer.models import (
    BindingKind,
    ImportBinding,
    ImportStatement,
    ImportStyle,
    ImportTable,
)


# ============================================================================
# PATTERNS
# ============================================================================

IDENTIFIER = r'[A-Za-z_$][\w$]*'

ES_IMPORT = re.compile(
    r'''^(?P<indent>\s*)import\s+(?P<type>type\s+)?(?P<clause>.+?)\s+from\s+'''
    r'''(?P<quote>['"])(?P<module>[^'"]+)(?P=quote)\s*(?P<semi>;?)(?P<trailing>\s*//.*?)?\s*$'''
)

REQUIRE = re.compile(
    r'''^(?P<indent>\s*)(?P<keyword>const|let|var)\s+(?P<target>''' + IDENTIFIER + r'''|\{[^{}]*\})\s*=\s*'''
    r'''require\(\s*(?P<quote>['"])(?P<module>[^'"]+)(?P=quote)\s*\)\s*(?P<semi>;?)(?P<trailing>\s*//.*?)?\s*$'''
)

ES_CLAUSE = re.compile(
    r'^(?:(?P<default>' + IDENTIFIER + r')\s*(?:,\s*|$))?'
    r'(?:\*\s*as\s+(?P<namespace>' + IDENTIFIER + r')|\{(?P<named>[^{}]*)\})?$'
)

NAMED_ITEM = re.compile(
    r'^(?P<type>type\s+)?(?P<imported>' + IDENTIFIER + r')(?:\s+as\s+(?P<local>' + IDENTIFIER + r'))?$'
)

DESTRUCTURED_ITEM = re.compile(
    r'^(?P<imported>' + IDENTIFIER + r')(?:\s*:\s*(?P<local>' + IDENTIFIER + r'))?$'
)

EMPTY_IMPORT = re.compile(r'^\s*import\s+(?:type\s+)?\{\s*\}\s*from\s+[\'"][^\'"]+[\'"]\s*;?\s*$')
EMPTY_REQUIRE = re.compile(r'^\s*(?:const|let|var)\s*\{\s*\}\s*=\s*require\(.*\)\s*;?\s*$')

BOM = '\ufeff'


# ============================================================================
# PARSING
# ============================================================================

def _split_items(body: str) -> List[str]:
    return [item.strip() for item in body.split(',') if item.strip()]


def _parse_es_clause(clause: str, clause_type_only: bool) -> Optional[List[ImportBinding]]:
    match = ES_CLAUSE.match(clause.strip())
    if not match or not any(match.group(g) is not None for g in ('default', 'namespace', 'named')):
        return None

    bindings = []
    if match.group('default'):
        bindings.append(ImportBinding(
            local_name=match.group('default'),
            kind=BindingKind.DEFAULT,
            is_type_only=clause_type_only,
        ))
    if match.group('namespace'):
        bindings.append(ImportBinding(
            local_name=match.group('namespace'),
            kind=BindingKind.NAMESPACE,
            is_type_only=clause_type_only,
        ))
    if match.group('named') is not None:
        for item in _split_items(match.group('named')):
            item_match = NAMED_ITEM.match(item)
            if not item_match:
                return None
            imported = item_match.group('imported')
            bindings.append(ImportBinding(
                local_name=item_match.group('local') or imported,
                imported_name=imported,
                kind=BindingKind.NAMED,
                is_type_only=clause_type_only or bool(item_match.group('type')),
            ))
    return bindings


def _parse_require_target(target: str) -> Optional[List[ImportBinding]]:
    if not target.startswith('{'):
        return [ImportBinding(local_name=target, kind=BindingKind.REQUIRE)]

    bindings = []
    for item in _split_items(target[1:-1]):
        item_match = DESTRUCTURED_ITEM.match(item)
        if not item_match:
            return None
        imported = item_match.group('imported')
        bindings.append(ImportBinding(
            local_name=item_match.group('local') or imported,
            imported_name=imported,
            kind=BindingKind.NAMED,
        ))
    return bindings


def parse_import_line(line: str, line_number: int) -> Optional[ImportStatement]:
    """Model one line as an ImportStatement, or None if it is not one."""
    text = line.rstrip('\r')
    if line_number == 1 and text.startswith(BOM):
        text = text[1:]

    match = ES_IMPORT.match(text)
    if match:
        clause_type_only = bool(match.group('type'))
        bindings = _parse_es_clause(match.group('clause'), clause_type_only)
        if bindings is None:
            return None
        return ImportStatement(
            module_specifier=match.group('module'),
            bindings=tuple(bindings),
            source_line=line_number,
            raw_text=text,
            style=ImportStyle.ES,
            is_type_only=clause_type_only,
            quote=match.group('quote'),
            has_semicolon=bool(match.group('semi')),
            indent=match.group('indent'),
            trailing=match.group('trailing') or '',
        )

    match = REQUIRE.match(text)
    if match:
        bindings = _parse_require_target(match.group('target'))
        if bindings is None:
            return None
        return ImportStatement(
            module_specifier=match.group('module'),
            bindings=tuple(bindings),
            source_line=line_number,
            raw_text=text,
            style=ImportStyle.COMMONJS,
            quote=match.group('quote'),
            has_semicolon=bool(match.group('semi')),
            indent=match.group('indent'),
            keyword=match.group('keyword'),
            trailing=match.group('trailing') or '',
        )

    return None


def build_import_table(file_text: str) -> ImportTable:
    """Build the module -> statements table for one file's current text."""
    table: ImportTable = {}
    for number, line in enumerate(file_text.split('\n'), 1):
        if 'import' not in line and 'require' not in line:
            continue
        statement = parse_import_line(line, number)
        if statement is not None:
            table.setdefault(statement.module_specifier, []).append(statement)
    return table


def statements_by_line(table: ImportTable) -> Dict[int, ImportStatement]:
    return {
        statement.source_line: statement
        for statements in table.values()
        for statement in statements
    }


def duplicate_modules(table: ImportTable) -> Dict[str, List[ImportStatement]]:
    """Modules with two or more statements sharing style and type-only flag."""
    duplicates = {}
    for module, statements in table.items():
        keys = [s.group_key for s in statements]
        if any(keys.count(key) > 1 for key in set(keys)):
            duplicates[module] = statements
    return duplicates


# ============================================================================
# RENDERING
# ============================================================================

def render_statement(
    template: ImportStatement,
    bindings: Iterable[ImportBinding],
) -> str:
    """Render bindings as one statement, borrowing layout from template.

    Bindings are emitted in the order given. Callers are responsible for
    passing a combination the target syntax can express.
    """
    bindings = list(bindings)
    quote = template.quote
    semi = ';' if template.has_semicolon else ''
    module = f"{quote}{template.module_specifier}{quote}"

    if template.style is ImportStyle.COMMONJS:
        keyword = template.keyword or 'const'
        whole = [b for b in bindings if b.kind is BindingKind.REQUIRE]
        if whole:
            target = whole[0].local_name
        else:
            target = "{ " + ", ".join(b.destructured_text for b in bindings) + " }"
        return f"{template.indent}{keyword} {target} = require({module}){semi}{template.trailing}"

    parts = []
    for binding in bindings:
        if binding.kind is BindingKind.DEFAULT:
            parts.append(binding.local_name)
    for binding in bindings:
        if binding.kind is BindingKind.NAMESPACE:
            parts.append(f"* as {binding.local_name}")
    named = [b for b in bindings if b.kind is BindingKind.NAMED]
    if named:
        if template.is_type_only:
            items = [_strip_type(b).text for b in named]
        else:
            items = [b.text for b in named]
        parts.append("{ " + ", ".join(items) + " }")

    type_prefix = "type " if template.is_type_only else ""
    return f"{template.indent}import {type_prefix}{', '.join(parts)} from {module}{semi}{template.trailing}"


def _strip_type(binding: ImportBinding) -> ImportBinding:
    """Clause-level `import type` already covers each binding."""
    return ImportBinding(
        local_name=binding.local_name,
        imported_name=binding.imported_name,
        kind=binding.kind,
        is_type_only=False,
    )


# ============================================================================
# TEXT EDITS
# ============================================================================

def apply_line_edits(
    file_text: str,
    replacements: Dict[int, str],
    deletions: Set[int]
) -> str:
    """Replace and delete whole lines (1-indexed). Keeps CRLF endings and a leading BOM intact."""
    lines = file_text.split('\n')
    bom = BOM if lines[0].startswith(BOM) else ''
    result = []
    for number, line in enumerate(lines, 1):
        if number in deletions:
            continue
        if number in replacements:
            new_line = replacements[number]
            if line.endswith('\r') and not new_line.endswith('\r'):
                new_line += '\r'
            result.append(new_line)
        else:
            result.append(line)
    if bom and result and not result[0].startswith(BOM):
        result[0] = bom + result[0]
    return '\n'.join(result)


def _is_empty_import(line: str) -> bool:
    text = line.rstrip('\r').lstrip(BOM)
    return bool(EMPTY_IMPORT.match(text) or EMPTY_REQUIRE.match(text))


def remove_empty_imports(file_text: str) -> str:
    """Drop `import {} from 'm'` and `const {} = require('m')` lines."""
    deletions = {
        number for number, line in enumerate(file_text.split('\n'), 1)
        if _is_empty_import(line)
    }
    if not deletions:
        return file_text
    return apply_line_edits(file_text, {}, deletions)
