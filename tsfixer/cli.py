"""
Command-line entry point: `fix-typescript` / `python -m tsfixer`.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tsfixer import VERSION
from tsfixer.collaborators import DEFAULT_COMPILER_COMMAND, DEFAULT_LINTER_COMMAND, DEFAULT_TIMEOUT
from tsfixer.config import DEFAULT_REPORT_PATH, FixerConfig, TsConfigParser
from tsfixer.errors import CompilerInvocationError
from tsfixer.heuristics import OPT_IN_RULES
from tsfixer.orchestrator import FixOrchestrator
from tsfixer.report import ReportGenerator

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""

    parser = argparse.ArgumentParser(
        prog='fix-typescript',
        description='''
╔══════════════════════════════════════════════════════════════════════════════════╗
║               FIX-TYPESCRIPT v1.0 - Diagnostic-Driven Import Fixer               ║
║                                                                                  ║
║  Runs the TypeScript compiler, merges duplicate imports, removes imports the    ║
║  compiler or ESLint report as unused, then re-runs the compiler to verify.      ║
╚══════════════════════════════════════════════════════════════════════════════════╝

BEHAVIOR:
  The project root is the directory holding tsconfig.json. It is found by
  walking up from the target directory unless --tsconfig is given.

  Only files named in compiler diagnostics are touched. Files whose
  diagnostics carry no line/column (summary tables, bare paths) get the
  heuristic pass: duplicate-import merging plus any --rule you enable.

EXAMPLES:
  # Check, fix and re-verify the project around the current directory
  fix-typescript

  # Only report, never write
  fix-typescript --no-fix --report

  # Preview the edits as diffs
  fix-typescript --dry-run

  # Restrict fixes to one directory and write a JSON export
  fix-typescript ./src --export fixes.json
        ''',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
OUTCOMES:
  ✅ passed        - no diagnostics left (exit 0)
  📉 improved      - fewer diagnostics than before (exit 1)
  ➖ unchanged     - same count as before (exit 1)
  📈 regression    - more diagnostics than before (exit 1)
  ⏸️  not_verified  - --no-fix or --dry-run with diagnostics present (exit 1)
  ❓ unparsed      - compiler failed but its output could not be parsed (exit 1)

NOTES:
  - Unused imports are only removed when ESLint or the compiler says so
  - Type-only and value imports are never merged together
  - Always use --dry-run first to preview changes
'''
    )

    parser.add_argument(
        'target',
        nargs='?',
        type=Path,
        metavar='DIRECTORY',
        help='Directory to fix (same as --dir)'
    )

    # Target selection
    target_group = parser.add_argument_group('Target Selection')
    target_group.add_argument(
        '--dir', '-d',
        type=Path,
        metavar='DIRECTORY',
        help='Directory to fix (default: tsconfig location or current dir)'
    )
    target_group.add_argument(
        '--tsconfig', '-c',
        type=Path,
        metavar='FILE',
        help='Path to tsconfig.json (auto-detected from the target if not specified)'
    )
    target_group.add_argument(
        '--exclude', '-e',
        action='append',
        metavar='PATTERN',
        help='Additional directory names to exclude (can use multiple times)'
    )
    target_group.add_argument(
        '--include-tests',
        action='store_true',
        help='Also fix *.test.* / *.spec.* / __tests__ files'
    )

    # Fix options
    fix_group = parser.add_argument_group('Fix Options')
    fix_group.add_argument(
        '--no-fix',
        action='store_true',
        help='Only check and report, do not modify files'
    )
    fix_group.add_argument(
        '--no-duplicate-fix',
        action='store_true',
        help='Do not merge duplicate imports'
    )
    fix_group.add_argument(
        '--no-unused-fix',
        action='store_true',
        help='Do not remove unused imports'
    )
    fix_group.add_argument(
        '--no-heuristics',
        action='store_true',
        help='Skip files that only have low-confidence diagnostics'
    )
    fix_group.add_argument(
        '--rule',
        action='append',
        choices=sorted(OPT_IN_RULES),
        metavar='NAME',
        help=f"Enable an opt-in heuristic rule (choices: {', '.join(sorted(OPT_IN_RULES))})"
    )
    fix_group.add_argument(
        '--dry-run', '-n',
        action='store_true',
        help='Preview changes without applying them'
    )

    # Process options
    process_group = parser.add_argument_group('Process Options')
    process_group.add_argument(
        '--compiler-cmd',
        default=DEFAULT_COMPILER_COMMAND,
        metavar='CMD',
        help=f"Type-check command (default: {DEFAULT_COMPILER_COMMAND})"
    )
    process_group.add_argument(
        '--linter-cmd',
        default=DEFAULT_LINTER_COMMAND,
        metavar='CMD',
        help=f"ESLint command (default: {DEFAULT_LINTER_COMMAND})"
    )
    process_group.add_argument(
        '--timeout',
        type=int,
        default=DEFAULT_TIMEOUT,
        metavar='SECONDS',
        help=f"Timeout for each compiler/linter run (default: {DEFAULT_TIMEOUT})"
    )
    process_group.add_argument(
        '--workers',
        type=int,
        default=4,
        metavar='N',
        help='Files fixed in parallel (default: 4)'
    )

    # Output options
    output_group = parser.add_argument_group('Output Options')
    output_group.add_argument(
        '--report',
        action='store_true',
        help='Write a plain-text error report'
    )
    output_group.add_argument(
        '--report-path',
        type=Path,
        default=Path(DEFAULT_REPORT_PATH),
        metavar='FILE',
        help=f"Where to write the report (default: {DEFAULT_REPORT_PATH})"
    )
    output_group.add_argument(
        '--no-suggestions',
        action='store_true',
        help='Leave remediation hints out of the report'
    )
    output_group.add_argument(
        '--export',
        type=Path,
        metavar='FILE',
        help='Export results to JSON file'
    )
    output_group.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed output'
    )
    output_group.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Only show errors and summary'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'%(prog)s {VERSION}'
    )

    return parser


def setup_logging(verbose: bool = False, quiet: bool = False):
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_config(args: argparse.Namespace) -> FixerConfig:
    """Resolve project root and targets, then fold every flag into a FixerConfig.

    Raises FileNotFoundError for a missing --tsconfig or target directory.
    """
    target = args.target or args.dir
    target_dir = target.resolve() if target else None
    if target_dir is not None and not target_dir.is_dir():
        raise FileNotFoundError(f"Not a directory: {target_dir}")

    tsconfig = None
    tsconfig_path = args.tsconfig
    if tsconfig_path:
        tsconfig_path = tsconfig_path.resolve()
        if not tsconfig_path.exists():
            raise FileNotFoundError(f"tsconfig.json not found: {tsconfig_path}")
    else:
        tsconfig_path = TsConfigParser.find_tsconfig(target_dir or Path.cwd())

    if tsconfig_path:
        try:
            tsconfig = TsConfigParser.parse(tsconfig_path)
            logger.info(f"Using tsconfig: {tsconfig_path}")
        except ValueError as e:
            logger.warning(f"Failed to parse tsconfig.json: {e}")
    else:
        logger.info("No tsconfig.json found, using the target directory as project root")

    if tsconfig_path:
        project_root = tsconfig_path.parent
    else:
        project_root = target_dir or Path.cwd()

    config = FixerConfig(
        project_root=project_root,
        target_dirs=[target_dir] if target_dir else [],
        tsconfig_path=tsconfig_path if args.tsconfig else None,
        fix=not args.no_fix,
        fix_duplicate_imports=not args.no_duplicate_fix,
        fix_unused_imports=not args.no_unused_fix,
        fix_heuristics=not args.no_heuristics,
        opt_in_rules=list(args.rule or []),
        dry_run=args.dry_run,
        generate_report=args.report,
        report_path=args.report_path,
        include_suggestions=not args.no_suggestions,
        export_path=args.export,
        verbose=args.verbose,
        quiet=args.quiet,
        include_test_files=args.include_tests,
        compiler_command=args.compiler_cmd,
        linter_command=args.linter_cmd,
        timeout=args.timeout,
        max_workers=args.workers,
    )
    if tsconfig:
        config.add_tsconfig_excludes(tsconfig)
    if args.exclude:
        config.exclude_patterns.update(args.exclude)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    try:
        config = build_config(args)
    except FileNotFoundError as e:
        print(f"❌ Error: {e}")
        return 1

    if not config.quiet:
        print(f"📁 Project root: {config.project_root}")
        if config.target_dirs != [config.project_root]:
            print(f"🔍 Fixing:       {', '.join(str(d) for d in config.target_dirs)}")

    try:
        report = FixOrchestrator(config).run()
    except CompilerInvocationError as e:
        print(f"❌ Error: {e}")
        return 1

    if not config.quiet:
        ReportGenerator.print_changes(report)
    ReportGenerator.print_summary(report)

    if config.generate_report:
        ReportGenerator.save(report, config.report_path, config.include_suggestions)

    if config.export_path:
        try:
            ReportGenerator.export_json(report, config.export_path)
        except OSError as e:
            logger.error(f"Failed to export JSON to {config.export_path}: {e}")

    return report.exit_code


if __name__ == '__main__':
    sys.exit(main())
