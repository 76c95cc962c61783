"""
Tests for the text report, JSON export and console output.
"""

import json
from datetime import datetime

from conftest import PRIMARY_OUTPUT
from tsfixer.diagnostics import parse_diagnostics
from tsfixer.models import (
    BatchResult,
    FixResult,
    FixState,
    RunReport,
    VerificationOutcome,
    VerificationResult,
)
from tsfixer.report import ReportGenerator


def make_report(**overrides) -> RunReport:
    diagnostics = parse_diagnostics(PRIMARY_OUTPUT)
    batch = BatchResult(total=2)
    batch.add(FixResult(
        file='src/app.ts',
        fixed=True,
        change_count=1,
        message='removed 1 unused imports (unusedHelper)',
        actions=['removed 1 unused imports (unusedHelper)'],
        diff="--- a/src/app.ts\n+++ b/src/app.ts\n-import { unusedHelper } from './h';\n",
    ))
    batch.add(FixResult(file='src/lib/util.ts', error='src/lib/util.ts: cannot read: denied'))
    values = dict(
        started_at=datetime(2024, 5, 1, 12, 0, 0),
        finished_at=datetime(2024, 5, 1, 12, 0, 3),
        initial_diagnostics=diagnostics,
        final_diagnostics=diagnostics[1:],
        batch=batch,
        verification=VerificationResult(VerificationOutcome.IMPROVED, 3, 2),
        states=[FixState.IDLE, FixState.CHECKING, FixState.FIXING, FixState.REVERIFYING, FixState.DONE],
    )
    values.update(overrides)
    return RunReport(**values)


class TestTextReport:

    def test_header_and_counts(self):
        text = ReportGenerator.generate_text(make_report())
        assert 'Generated:   2024-05-01T12:00:03' in text
        assert 'Outcome:     improved' in text
        assert 'Initial:     3 diagnostics' in text
        assert 'Final:       2 diagnostics' in text

    def test_remaining_diagnostics_grouped_by_file(self):
        text = ReportGenerator.generate_text(make_report())
        assert 'File: src/app.ts (1 errors)' in text
        assert "Line 12, Column 5: TS2322 - Type 'string' is not assignable to type 'number'." in text
        assert 'TS6133 - ' not in text

    def test_suggestions_optional(self):
        assert 'Suggestions:' in ReportGenerator.generate_text(make_report())
        assert 'Suggestions:' not in ReportGenerator.generate_text(make_report(), include_suggestions=False)

    def test_fix_details(self):
        text = ReportGenerator.generate_text(make_report())
        assert 'Fix pass: 1 fixed, 0 unchanged, 1 failed of 2 files' in text
        assert 'FIXED   src/app.ts' in text
        assert 'FAILED  src/lib/util.ts' in text

    def test_no_errors(self):
        report = make_report(final_diagnostics=[], verification=VerificationResult(VerificationOutcome.PASSED, 3, 0))
        assert 'No TypeScript errors found.' in ReportGenerator.generate_text(report)

    def test_save(self, tmp_path):
        path = tmp_path / 'typescript-errors.log'
        assert ReportGenerator.save(make_report(), path)
        assert 'TypeScript Diagnostic Report' in path.read_text(encoding='utf-8')

    def test_save_failure_is_reported_not_raised(self, tmp_path):
        assert not ReportGenerator.save(make_report(), tmp_path / 'missing-dir' / 'report.log')


class TestJsonExport:

    def test_export(self, tmp_path, capsys):
        path = tmp_path / 'report.json'
        ReportGenerator.export_json(make_report(), path)
        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['summary']['outcome'] == 'improved'
        assert data['summary']['initial_count'] == 3
        assert data['summary']['final_count'] == 2
        assert data['summary']['delta'] == -1
        assert data['fixes']['failed'] == 1
        assert data['states'][-1] == 'done'
        assert len(data['diagnostics']) == 2
        assert 'Report exported to' in capsys.readouterr().out


class TestConsole:

    def test_summary(self, capsys):
        ReportGenerator.print_summary(make_report())
        out = capsys.readouterr().out
        assert 'TYPESCRIPT FIX SUMMARY' in out
        assert 'Outcome: IMPROVED' in out

    def test_regression_warning(self, capsys):
        report = make_report(verification=VerificationResult(VerificationOutcome.REGRESSION, 3, 4))
        ReportGenerator.print_summary(report)
        assert 'increased the number of diagnostics' in capsys.readouterr().out

    def test_dry_run_changes_show_diff(self, capsys):
        ReportGenerator.print_changes(make_report(dry_run=True))
        out = capsys.readouterr().out
        assert 'CHANGES (DRY-RUN)' in out
        assert "-import { unusedHelper } from './h';" in out
        assert 'Would change: 1 items in 1 files' in out
