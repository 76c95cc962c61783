"""
Check, fix, re-verify.

One run is a small state machine:

    IDLE -> CHECKING -> DONE                       (nothing to fix, or fixing disabled)
    IDLE -> CHECKING -> FIXING -> DONE             (dry run)
    IDLE -> CHECKING -> FIXING -> REVERIFYING -> DONE

There is exactly one fix pass and one re-verification; the orchestrator never
loops. Files are fixed independently of each other on a thread pool, and a
failure in one file is recorded in its FixResult without touching the rest.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from tsfixer.collaborators import CompilerRun, EslintLinter, TypeScriptCompiler
from tsfixer.config import FixerConfig
from tsfixer.diagnostics import group_diagnostics, normalize_path, parse_diagnostics
from tsfixer.errors import FileIOError, LinterInvocationError
from tsfixer.fileio import read_source, resolve_file, unified_diff, write_source
from tsfixer.heuristics import apply_heuristics, needs_heuristics
from tsfixer.import_model import build_import_table, statements_by_line
from tsfixer.merger import MergeOutcome, merge
from tsfixer.models import (
    BatchResult,
    Diagnostic,
    FixResult,
    FixState,
    RunReport,
    UnusedBinding,
    VerificationOutcome,
    VerificationResult,
)
from tsfixer.unused import UnusedImportRemover, unused_from_diagnostics

logger = logging.getLogger(__name__)


def verify(initial_count: int, final: List[Diagnostic], compiler_success: bool) -> VerificationResult:
    """Compare the diagnostic count after fixing with the count before."""
    final_count = len(final)
    if final_count == 0:
        outcome = VerificationOutcome.PASSED if compiler_success else VerificationOutcome.UNPARSED
    elif final_count < initial_count:
        outcome = VerificationOutcome.IMPROVED
    elif final_count == initial_count:
        outcome = VerificationOutcome.UNCHANGED
    else:
        outcome = VerificationOutcome.REGRESSION
    return VerificationResult(outcome=outcome, initial_count=initial_count, final_count=final_count)


class FixOrchestrator:
    """Drives one check / fix / re-verify cycle for a project."""

    def __init__(
        self,
        config: FixerConfig,
        compiler: Optional[TypeScriptCompiler] = None,
        linter: Optional[EslintLinter] = None
    ):
        self.config = config
        self.compiler = compiler or TypeScriptCompiler(
            config.project_root,
            command=config.compiler_command,
            tsconfig_path=config.tsconfig_path,
            timeout=config.timeout,
        )
        self.linter = linter or EslintLinter(
            config.project_root,
            command=config.linter_command,
            include_test_files=config.include_test_files,
            timeout=config.timeout,
        )
        self.state = FixState.IDLE
        self.states: List[FixState] = [FixState.IDLE]

    def _transition(self, state: FixState):
        logger.debug(f"State: {self.state.value} -> {state.value}")
        self.state = state
        self.states.append(state)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def run(self) -> RunReport:
        """Run the full cycle. CompilerInvocationError propagates and aborts it."""
        report = RunReport(started_at=datetime.now(), dry_run=self.config.dry_run)

        self._transition(FixState.CHECKING)
        diagnostics, compiler_run = self.check()
        report.initial_diagnostics = diagnostics
        initial_count = len(diagnostics)

        if not diagnostics:
            report.verification = verify(0, [], compiler_run.success)
            if report.verification.outcome is VerificationOutcome.UNPARSED:
                logger.error(
                    f"Compiler exited with {compiler_run.returncode} but no diagnostics could be parsed"
                )
            else:
                logger.info("No TypeScript errors found")
            return self._finish(report)

        logger.info(f"Found {initial_count} TypeScript diagnostics")

        if not self.config.fix:
            report.verification = VerificationResult(VerificationOutcome.NOT_VERIFIED, initial_count)
            return self._finish(report)

        self._transition(FixState.FIXING)
        report.batch = self.fix(diagnostics)

        if self.config.dry_run:
            report.verification = VerificationResult(VerificationOutcome.NOT_VERIFIED, initial_count)
            return self._finish(report)

        self._transition(FixState.REVERIFYING)
        final, final_run = self.check()
        report.final_diagnostics = final
        report.verification = verify(initial_count, final, final_run.success)

        if report.verification.is_regression:
            logger.warning(
                f"Fixes increased the diagnostic count from {initial_count} to {len(final)}"
            )
        else:
            logger.info(
                f"Re-verification: {report.verification.outcome.value} "
                f"({initial_count} -> {len(final)} diagnostics)"
            )
        return self._finish(report)

    def _finish(self, report: RunReport) -> RunReport:
        self._transition(FixState.DONE)
        report.states = list(self.states)
        report.finished_at = datetime.now()
        return report

    def check(self) -> Tuple[List[Diagnostic], CompilerRun]:
        compiler_run = self.compiler.run()
        diagnostics = parse_diagnostics(compiler_run.output, str(self.config.project_root))
        return diagnostics, compiler_run

    # ------------------------------------------------------------------
    # Fix pass
    # ------------------------------------------------------------------

    def _search_roots(self) -> List[Path]:
        return [self.config.project_root, Path.cwd()]

    def fix(self, diagnostics: Sequence[Diagnostic]) -> BatchResult:
        """One fix pass over every file that has diagnostics."""
        by_file = group_diagnostics(list(diagnostics), by='file')
        batch = BatchResult(total=len(by_file))

        tasks: List[Tuple[str, List[Diagnostic], Path]] = []
        for file, file_diagnostics in sorted(by_file.items()):
            path = resolve_file(file, self._search_roots())
            if path is None:
                batch.add(FixResult(file=file, message='File not found'))
                continue
            if self.config.should_exclude(path):
                logger.debug(f"Skipping excluded file: {file}")
                batch.add(FixResult(file=file, message='Excluded'))
                continue
            tasks.append((file, file_diagnostics, path))

        evidence = self._collect_evidence(
            [path for _, file_diagnostics, path in tasks if not needs_heuristics(file_diagnostics)]
        )

        with ThreadPoolExecutor(max_workers=max(1, self.config.max_workers)) as executor:
            future_map = {
                executor.submit(
                    self.fix_file,
                    file,
                    file_diagnostics,
                    path,
                    evidence.get(self._evidence_key(path), []),
                ): file
                for file, file_diagnostics, path in tasks
            }
            for future in as_completed(future_map):
                file = future_map[future]
                try:
                    batch.add(future.result())
                except Exception as e:  # one file never aborts the batch
                    logger.error(f"Unexpected error fixing {file}: {e}")
                    batch.add(FixResult(file=file, error=str(e), message='Unexpected error'))

        batch.details.sort(key=lambda r: r.file)
        logger.info(
            f"Fix pass: {batch.fixed} fixed, {batch.skipped} unchanged, "
            f"{batch.failed} failed of {batch.total} files"
        )
        return batch

    def _evidence_key(self, path: Path) -> str:
        return normalize_path(str(path.resolve()), str(self.config.project_root))

    def _collect_evidence(self, paths: List[Path]) -> Dict[str, List[UnusedBinding]]:
        """Linter unused-binding records for the given files, keyed like _evidence_key."""
        if not paths or not self.config.fix_unused_imports:
            return {}

        try:
            records = self.linter.run([str(path.resolve()) for path in paths])
        except LinterInvocationError as e:
            logger.warning(f"Linter unavailable, relying on compiler evidence only: {e}")
            return {}

        evidence: Dict[str, List[UnusedBinding]] = {}
        for record in records:
            key = normalize_path(record.file or '', str(self.config.project_root))
            evidence.setdefault(key, []).append(record)
        return evidence

    def fix_file(
        self,
        file: str,
        diagnostics: List[Diagnostic],
        path: Path,
        linter_evidence: Sequence[UnusedBinding] = ()
    ) -> FixResult:
        """Fix one file: precise evidence first, heuristics only without it."""
        if needs_heuristics(diagnostics):
            if not self.config.fix_heuristics:
                return FixResult(file=file, message='Only low-confidence diagnostics, heuristics disabled')
            return apply_heuristics(
                file,
                diagnostics,
                path,
                dry_run=self.config.dry_run,
                rules=self.config.opt_in_rules,
                merge_duplicates=self.config.fix_duplicate_imports,
            )

        try:
            original = read_source(path)
            new_text, change_count, actions = self._fix_text(
                original,
                list(linter_evidence) + unused_from_diagnostics(diagnostics),
            )

            if new_text == original:
                return FixResult(file=file, message='No changes needed')

            result = FixResult(file=file, fixed=True, change_count=change_count, actions=actions)
            if self.config.dry_run:
                result.message = f"Changes identified (dry run): {'; '.join(actions)}"
                result.diff = unified_diff(file, original, new_text)
            else:
                write_source(path, new_text)
                result.message = '; '.join(actions)
                logger.info(f"Fixed {file}: {result.message}")
            return result
        except FileIOError as e:
            logger.error(f"Error processing {file}: {e}")
            return FixResult(file=file, error=str(e), message='File I/O failed')

    def _fix_text(self, original: str, evidence: List[UnusedBinding]) -> Tuple[str, int, List[str]]:
        text = original
        change_count = 0
        actions = []

        outcome = MergeOutcome()
        if self.config.fix_duplicate_imports:
            outcome = merge(build_import_table(original))
            if outcome.changed:
                text = outcome.apply(original)
                change_count += outcome.merged_count
                actions.append(
                    f"merged {outcome.merged_count} duplicate imports "
                    f"({', '.join(outcome.merged_modules)})"
                )

        if self.config.fix_unused_imports and evidence:
            remover = UnusedImportRemover()
            text = remover.remove(text, remap_evidence(original, evidence, outcome))
            if remover.removed:
                change_count += len(remover.removed)
                names = ', '.join(name for _, name in remover.removed)
                actions.append(f"removed {len(remover.removed)} unused imports ({names})")

        return text, change_count, actions


def remap_evidence(
    original: str,
    evidence: Sequence[UnusedBinding],
    outcome: MergeOutcome
) -> List[UnusedBinding]:
    """Move evidence from lines of the original text onto the merged text.

    Whole-statement records are expanded to the statement's names first, so
    that a statement merged into another only takes its own names with it.
    """
    statements = statements_by_line(build_import_table(original))
    remapped = []
    for record in evidence:
        names = [record.name]
        if record.name is None and record.line in statements:
            names = statements[record.line].local_names
        line = outcome.remap_line(record.line)
        remapped.extend(replace(record, line=line, name=name) for name in names)
    return remapped
