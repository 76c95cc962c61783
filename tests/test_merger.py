"""
Tests for the duplicate-import merger.
"""

import pytest

from tsfixer.errors import AmbiguousMergeWarning
from tsfixer.import_model import build_import_table, parse_import_line
from tsfixer.merger import merge, merge_group, merge_text


# =============================================================================
# SCENARIOS
# =============================================================================

class TestMergeScenarios:

    def test_two_named_imports_become_one(self):
        text = (
            "import { A } from 'x';\n"
            "import React from 'react';\n"
            "\n"
            "import { B } from 'x';\n"
            "export const y = A + B;\n"
        )
        merged, outcome = merge_text(text)
        assert merged == (
            "import { A, B } from 'x';\n"
            "import React from 'react';\n"
            "\n"
            "export const y = A + B;\n"
        )
        assert [line for line in merged.split('\n') if "'x'" in line] == ["import { A, B } from 'x';"]
        assert outcome.merged_count == 1
        assert outcome.merged_modules == ['x']

    def test_default_and_named(self):
        text = "import React from 'react';\nimport { useState } from 'react';\n"
        merged, _ = merge_text(text)
        assert merged == "import React, { useState } from 'react';\n"

    def test_default_and_namespace(self):
        text = "import D from 'm';\nimport * as NS from 'm';\n"
        merged, _ = merge_text(text)
        assert merged == "import D, * as NS from 'm';\n"

    def test_commonjs_destructurings(self):
        text = "const { a } = require('m');\nconst { b: c, a } = require('m');\n"
        merged, _ = merge_text(text)
        assert merged == "const { a, b: c } = require('m');\n"

    def test_named_sorted_and_deduplicated(self):
        text = "import { z, a } from 'm';\nimport { a, m as k } from 'm';\n"
        merged, _ = merge_text(text)
        assert merged == "import { a, m as k, z } from 'm';\n"

    def test_three_statements(self):
        text = "import { a } from 'm';\nimport { b } from 'm';\nimport { c } from 'm';\n"
        merged, outcome = merge_text(text)
        assert merged == "import { a, b, c } from 'm';\n"
        assert outcome.merged_count == 2

    def test_crlf_file(self):
        text = "import { A } from 'x';\r\nimport { B } from 'x';\r\n"
        merged, _ = merge_text(text)
        assert merged == "import { A, B } from 'x';\r\n"

    def test_trailing_comment_kept(self):
        text = "import { A } from 'x'; // eslint-disable-line import/no-deprecated\nimport { B } from 'x';\n"
        merged, _ = merge_text(text)
        assert merged == "import { A, B } from 'x'; // eslint-disable-line import/no-deprecated\n"

    def test_trailing_comment_of_later_statement_carried(self):
        text = "import { A } from 'x';\nimport { B } from 'x'; // legacy\n"
        merged, _ = merge_text(text)
        assert merged == "import { A, B } from 'x'; // legacy\n"

    def test_different_trailing_comments_not_merged(self):
        text = "import { A } from 'x'; // one\nimport { B } from 'x'; // two\n"
        merged, outcome = merge_text(text)
        assert merged == text
        assert not outcome.changed

    def test_bom_file(self):
        text = "\ufeffimport { A } from 'x';\nimport { B } from 'x';\n"
        merged, _ = merge_text(text)
        assert merged == "\ufeffimport { A, B } from 'x';\n"


# =============================================================================
# PROPERTIES
# =============================================================================

class TestMergeProperties:

    @pytest.mark.parametrize('first,second', [
        ("import { a, b } from 'm';", "import { c } from 'm';"),
        ("import D from 'm';", "import { a, b as c } from 'm';"),
        ("import { x } from 'm';", "import { x, y } from 'm';"),
        ("const { a } = require('m');", "const { b } = require('m');"),
    ])
    def test_union_of_local_names(self, first, second):
        s1 = parse_import_line(first, 1)
        s2 = parse_import_line(second, 2)
        bindings, warnings = merge_group('m', [s1, s2])
        assert {b.local_name for b in bindings} == set(s1.local_names) | set(s2.local_names)
        assert warnings == []

    def test_idempotent(self):
        text = (
            "import { A } from 'x';\n"
            "import D from 'd';\n"
            "import { B } from 'x';\n"
            "import { C } from 'd';\n"
        )
        once, _ = merge_text(text)
        twice, outcome = merge_text(once)
        assert twice == once
        assert not outcome.changed

    def test_single_statement_untouched(self):
        text = "import {b,a} from 'm'\n"
        merged, outcome = merge_text(text)
        assert merged is text
        assert not outcome.changed


# =============================================================================
# TYPE-ONLY SEPARATION
# =============================================================================

class TestTypeOnlySeparation:

    def test_type_and_value_imports_never_combined(self):
        text = "import { A } from 'x';\nimport type { T } from 'x';\n"
        merged, outcome = merge_text(text)
        assert merged == text
        assert outcome.merged_count == 0

    def test_type_only_statements_merge_together(self):
        text = (
            "import type { B } from 'x';\n"
            "import { A } from 'x';\n"
            "import type { C } from 'x';\n"
        )
        merged, _ = merge_text(text)
        assert merged == "import type { B, C } from 'x';\nimport { A } from 'x';\n"

    def test_value_binding_wins_over_inline_type(self):
        text = "import { type A } from 'x';\nimport { A, B } from 'x';\n"
        merged, _ = merge_text(text)
        assert merged == "import { A, B } from 'x';\n"

    def test_es_and_commonjs_not_combined(self):
        text = "import { a } from 'm';\nconst { b } = require('m');\n"
        merged, _ = merge_text(text)
        assert merged == text


# =============================================================================
# CONFLICTS AND UNMERGEABLE UNIONS
# =============================================================================

class TestConflicts:

    def test_conflicting_defaults_first_wins_with_warning(self):
        text = "import A from 'm';\nimport B from 'm';\n"
        merged, outcome = merge_text(text)
        assert merged == "import A from 'm';\n"
        assert outcome.warnings == [AmbiguousMergeWarning('m', 'default', 'A', ('B',))]
        assert str(outcome.warnings[0]) == "Multiple default imports for 'm': A, B. Using A"

    def test_conflicting_requires(self):
        text = "const a = require('m');\nconst b = require('m');\n"
        merged, outcome = merge_text(text)
        assert merged == "const a = require('m');\n"
        assert outcome.warnings[0].kind == 'require'

    def test_same_default_twice_is_not_a_conflict(self):
        text = "import A from 'm';\nimport A, { b } from 'm';\n"
        merged, outcome = merge_text(text)
        assert merged == "import A, { b } from 'm';\n"
        assert outcome.warnings == []

    @pytest.mark.parametrize('text', [
        "import * as NS from 'm';\nimport { a } from 'm';\n",
        "const m = require('m');\nconst { a } = require('m');\n",
        "import type D from 'm';\nimport type { T } from 'm';\n",
    ])
    def test_unmergeable_unions_left_alone(self, text):
        merged, outcome = merge_text(text)
        assert merged == text
        assert not outcome.changed


# =============================================================================
# LINE REMAPPING
# =============================================================================

class TestRemapLine:

    def test_deleted_line_redirected_to_merge_target(self):
        text = (
            "import { A } from 'x';\n"   # 1
            "import { q } from 'q';\n"   # 2
            "import { B } from 'x';\n"   # 3
            "const z = 1;\n"             # 4
        )
        outcome = merge(build_import_table(text))
        assert outcome.remap_line(3) == 1
        assert outcome.remap_line(2) == 2
        assert outcome.remap_line(4) == 3

    def test_no_merge_is_identity(self):
        outcome = merge(build_import_table("import { a } from 'm';\n"))
        assert outcome.remap_line(1) == 1
        assert outcome.remap_line(10) == 10
