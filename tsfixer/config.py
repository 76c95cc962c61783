"""
Run configuration and tsconfig.json discovery.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from tsfixer.collaborators import DEFAULT_COMPILER_COMMAND, DEFAULT_LINTER_COMMAND, DEFAULT_TIMEOUT
from tsfixer.unused import is_test_file


# ============================================================================
# CONSTANTS
# ============================================================================

DEFAULT_REPORT_PATH = 'typescript-errors.log'

# File extensions the fixers will touch
FIXABLE_EXTENSIONS = ['.ts', '.tsx']

DEFAULT_EXCLUDES = ['node_modules', '.git', 'dist', 'build', 'out']


# ============================================================================
# TSCONFIG
# ============================================================================

@dataclass
class TsConfig:
    """The parts of tsconfig.json the fixer cares about."""
    config_path: Path
    exclude: List[str] = field(default_factory=list)


class TsConfigParser:
    """Finds and parses tsconfig.json (JSONC: comments and trailing commas allowed)."""

    @staticmethod
    def find_tsconfig(start_path: Path) -> Optional[Path]:
        """Find tsconfig.json by walking up the directory tree."""
        current = start_path.resolve()
        if current.is_file():
            current = current.parent
        while True:
            tsconfig_path = current / 'tsconfig.json'
            if tsconfig_path.exists():
                return tsconfig_path
            if current == current.parent:
                return None
            current = current.parent

    @staticmethod
    def strip_jsonc(content: str) -> str:
        """Remove // and /* */ comments outside strings, then trailing commas."""
        result = []
        i = 0
        in_string = False

        while i < len(content):
            char = content[i]

            if char == '"' and (i == 0 or content[i - 1] != '\\'):
                in_string = not in_string
                result.append(char)
                i += 1
            elif not in_string and content[i:i + 2] == '//':
                while i < len(content) and content[i] != '\n':
                    i += 1
            elif not in_string and content[i:i + 2] == '/*':
                i += 2
                while i < len(content) - 1 and content[i:i + 2] != '*/':
                    i += 1
                i += 2
            else:
                result.append(char)
                i += 1

        return re.sub(r',(\s*[}\]])', r'\1', ''.join(result))

    @classmethod
    def parse(cls, config_path: Path) -> TsConfig:
        if not config_path.exists():
            raise FileNotFoundError(f"tsconfig.json not found: {config_path}")

        content = config_path.read_text(encoding='utf-8')
        try:
            data = json.loads(cls.strip_jsonc(content))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {config_path}: {e}")

        return TsConfig(
            config_path=config_path,
            exclude=data.get('exclude', ['node_modules']),
        )


# ============================================================================
# RUN CONFIGURATION
# ============================================================================

@dataclass
class FixerConfig:
    """Every knob of one fix run. Built by the CLI, or directly in tests."""
    project_root: Path
    target_dirs: List[Path] = field(default_factory=list)
    tsconfig_path: Optional[Path] = None

    fix: bool = True
    fix_duplicate_imports: bool = True
    fix_unused_imports: bool = True
    fix_heuristics: bool = True
    opt_in_rules: List[str] = field(default_factory=list)
    dry_run: bool = False

    generate_report: bool = False
    report_path: Path = Path(DEFAULT_REPORT_PATH)
    include_suggestions: bool = True
    export_path: Optional[Path] = None
    verbose: bool = False
    quiet: bool = False

    extensions: List[str] = field(default_factory=lambda: list(FIXABLE_EXTENSIONS))
    include_test_files: bool = False
    exclude_patterns: Set[str] = field(default_factory=lambda: set(DEFAULT_EXCLUDES))

    compiler_command: str = DEFAULT_COMPILER_COMMAND
    linter_command: str = DEFAULT_LINTER_COMMAND
    timeout: int = DEFAULT_TIMEOUT
    max_workers: int = 4

    def __post_init__(self):
        self.project_root = Path(self.project_root).resolve()
        if not self.target_dirs:
            self.target_dirs = [self.project_root]
        self.target_dirs = [Path(d).resolve() for d in self.target_dirs]

    def should_exclude(self, path: Path) -> bool:
        """True when a file must not be touched by any fixer."""
        if path.suffix.lower() not in self.extensions:
            return True
        if not self.include_test_files and is_test_file(str(path)):
            return True
        for pattern in self.exclude_patterns:
            if pattern in path.parts:
                return True
        resolved = path.resolve()
        return not any(
            resolved == target or target in resolved.parents
            for target in self.target_dirs
        )

    def add_tsconfig_excludes(self, tsconfig: TsConfig):
        """Plain directory names from tsconfig `exclude` (globs are ignored)."""
        for pattern in tsconfig.exclude:
            name = pattern.strip('/').rstrip('/*')
            if name and not any(ch in name for ch in '*?[/'):
                self.exclude_patterns.add(name)
