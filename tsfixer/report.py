"""
Reports for a finished run: the plain-text error log, the console summary
and the JSON export.
"""

import json
import logging
from pathlib import Path
from typing import List

from tsfixer.categorize import suggest
from tsfixer.diagnostics import count_by_category, group_diagnostics, most_common_codes
from tsfixer.models import Diagnostic, RunReport, VerificationOutcome

logger = logging.getLogger(__name__)


OUTCOME_ICONS = {
    VerificationOutcome.PASSED: "✅",
    VerificationOutcome.IMPROVED: "📉",
    VerificationOutcome.UNCHANGED: "➖",
    VerificationOutcome.REGRESSION: "📈",
    VerificationOutcome.NOT_VERIFIED: "⏸️",
    VerificationOutcome.UNPARSED: "❓",
}


def _remaining(report: RunReport) -> List[Diagnostic]:
    if report.final_diagnostics is not None:
        return report.final_diagnostics
    return report.initial_diagnostics


class ReportGenerator:
    """Generates reports from a RunReport."""

    @staticmethod
    def format_diagnostics(diagnostics: List[Diagnostic], include_suggestions: bool = True) -> str:
        """Diagnostics grouped by file, one block per diagnostic."""
        if not diagnostics:
            return "No TypeScript errors found.\n"

        text = f"Found {len(diagnostics)} TypeScript errors:\n\n"
        for file, file_diagnostics in group_diagnostics(diagnostics, by='file').items():
            text += f"File: {file} ({len(file_diagnostics)} errors)\n"
            text += "-" * 80 + "\n"
            for diagnostic in file_diagnostics:
                text += (
                    f"Line {diagnostic.line}, Column {diagnostic.column}: "
                    f"{diagnostic.code} - {diagnostic.message}\n"
                )
                if diagnostic.snippet:
                    text += f"    {diagnostic.snippet}\n"
                if include_suggestions:
                    suggestions = suggest(diagnostic.category)
                    if suggestions:
                        text += "Suggestions:\n"
                        for suggestion in suggestions:
                            text += f"  - {suggestion}\n"
                text += "\n"
        return text

    @staticmethod
    def generate_text(report: RunReport, include_suggestions: bool = True) -> str:
        """The plain-text report written to the report file."""
        lines = [
            "TypeScript Diagnostic Report",
            "=" * 80,
            f"Generated:   {(report.finished_at or report.started_at).isoformat(timespec='seconds')}",
            f"Outcome:     {report.outcome.value}",
            f"Initial:     {len(report.initial_diagnostics)} diagnostics",
        ]
        if report.final_diagnostics is not None:
            lines.append(f"Final:       {len(report.final_diagnostics)} diagnostics")
        if report.dry_run:
            lines.append("Mode:        dry run (no files written)")
        lines.append("")

        remaining = _remaining(report)
        categories = count_by_category(remaining)
        if categories:
            lines.append("Errors by category:")
            for category, count in sorted(categories.items(), key=lambda item: (-item[1], item[0])):
                lines.append(f"  {category}: {count}")
            lines.append("")

            lines.append("Most common error codes:")
            for entry in most_common_codes(remaining):
                lines.append(f"  {entry['code']} ({entry['count']}): {entry['title']}")
            lines.append("")

        if report.batch is not None:
            batch = report.batch
            lines.append(
                f"Fix pass: {batch.fixed} fixed, {batch.skipped} unchanged, "
                f"{batch.failed} failed of {batch.total} files"
            )
            for result in batch.details:
                if result.error:
                    lines.append(f"  FAILED  {result.file}: {result.error}")
                elif result.fixed:
                    lines.append(f"  FIXED   {result.file}: {result.message}")
                else:
                    lines.append(f"  SKIPPED {result.file}: {result.message}")
            lines.append("")

        lines.append("=" * 80)
        return "\n".join(lines) + "\n\n" + ReportGenerator.format_diagnostics(remaining, include_suggestions)

    @staticmethod
    def save(report: RunReport, output_path: Path, include_suggestions: bool = True) -> bool:
        try:
            output_path.write_text(
                ReportGenerator.generate_text(report, include_suggestions),
                encoding='utf-8'
            )
        except OSError as e:
            logger.error(f"Failed to save error report to {output_path}: {e}")
            return False
        logger.info(f"Error report saved to {output_path}")
        return True

    @staticmethod
    def to_dict(report: RunReport) -> dict:
        remaining = _remaining(report)
        verification = report.verification
        return {
            "started_at": report.started_at.isoformat(),
            "finished_at": report.finished_at.isoformat() if report.finished_at else None,
            "dry_run": report.dry_run,
            "states": [state.value for state in report.states],
            "summary": {
                "outcome": report.outcome.value,
                "initial_count": len(report.initial_diagnostics),
                "final_count": verification.final_count if verification else None,
                "delta": verification.delta if verification else None,
                "by_category": count_by_category(remaining),
                "most_common": most_common_codes(remaining),
            },
            "fixes": report.batch.to_dict() if report.batch else None,
            "diagnostics": [d.to_dict() for d in remaining],
        }

    @staticmethod
    def export_json(report: RunReport, output_path: Path):
        """Export results to JSON file."""
        output_path.write_text(json.dumps(ReportGenerator.to_dict(report), indent=2), encoding='utf-8')
        print(f"\n📊 Report exported to: {output_path}")

    @staticmethod
    def print_summary(report: RunReport):
        """Print a summary of the run."""
        print("\n" + "=" * 80)
        print("TYPESCRIPT FIX SUMMARY")
        print("=" * 80)
        print(f"🔍 Initial diagnostics: {len(report.initial_diagnostics)}")
        if report.final_diagnostics is not None:
            print(f"🔁 After fixing:        {len(report.final_diagnostics)}")

        categories = count_by_category(_remaining(report))
        if categories:
            print()
            print("Errors by category:")
            for category, count in sorted(categories.items(), key=lambda item: (-item[1], item[0])):
                print(f"  • {category}: {count}")

        batch = report.batch
        if batch is not None:
            print()
            print(f"🛠️  Files fixed:   {batch.fixed}")
            print(f"⏭️  Files skipped: {batch.skipped}")
            print(f"❌ Files failed:  {batch.failed}")
            print(f"✏️  Changes:       {batch.change_count}")

        print()
        icon = OUTCOME_ICONS.get(report.outcome, "❓")
        print(f"{icon} Outcome: {report.outcome.value.upper()}")
        if report.outcome is VerificationOutcome.REGRESSION:
            print("   ⚠️  Fixes increased the number of diagnostics. Review the changes.")

    @staticmethod
    def print_changes(report: RunReport):
        """Print per-file changes, with diffs on dry runs."""
        if report.batch is None:
            return

        changed = [r for r in report.batch.details if r.fixed]
        if not changed:
            print("\nNo changes to apply.")
            return

        mode = "DRY-RUN" if report.dry_run else "APPLIED"
        print("\n" + "=" * 80)
        print(f"CHANGES ({mode})")
        print("=" * 80)

        for result in changed:
            print(f"\n📄 {result.file}")
            for action in result.actions:
                print(f"   • {action}")
            if result.diff:
                for diff_line in result.diff.rstrip('\n').split('\n'):
                    print(f"   {diff_line}")

        print("\n" + "-" * 80)
        action = "Would change" if report.dry_run else "Changed"
        print(f"{action}: {report.batch.change_count} items in {len(changed)} files")
        if report.batch.failed > 0:
            print(f"Failed: {report.batch.failed}")
