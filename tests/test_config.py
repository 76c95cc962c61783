"""
Tests for tsconfig discovery and run configuration.
"""

from pathlib import Path

import pytest

from tsfixer.config import DEFAULT_REPORT_PATH, FixerConfig, TsConfig, TsConfigParser


class TestTsConfigParser:

    def test_find_walks_up(self, project):
        nested = project / 'src' / 'deep'
        nested.mkdir()
        assert TsConfigParser.find_tsconfig(nested) == (project / 'tsconfig.json').resolve()

    def test_find_returns_none(self, tmp_path):
        # tmp_path lives under the system temp dir, which has no tsconfig.json
        assert TsConfigParser.find_tsconfig(tmp_path) is None

    def test_parse_jsonc(self, tmp_path):
        path = tmp_path / 'tsconfig.json'
        path.write_text(
            '{\n'
            '  // editor settings\n'
            '  "compilerOptions": { "baseUrl": "./src", },\n'
            '  /* block\n     comment */\n'
            '  "include": ["src/**/*"],\n'
            '  "exclude": ["node_modules", "legacy/", "**/*.gen.ts",],\n'
            '}\n',
            encoding='utf-8'
        )
        config = TsConfigParser.parse(path)
        assert config.exclude == ['node_modules', 'legacy/', '**/*.gen.ts']
        assert config.config_path == path

    def test_comment_markers_inside_strings_kept(self):
        stripped = TsConfigParser.strip_jsonc('{"url": "http://x/*y*/"}')
        assert stripped == '{"url": "http://x/*y*/"}'

    def test_parse_defaults(self, project):
        config = TsConfigParser.parse(project / 'tsconfig.json')
        assert config.exclude == ['node_modules']

    def test_parse_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TsConfigParser.parse(tmp_path / 'tsconfig.json')

    def test_parse_invalid(self, tmp_path):
        path = tmp_path / 'tsconfig.json'
        path.write_text('{ "include": [ }', encoding='utf-8')
        with pytest.raises(ValueError):
            TsConfigParser.parse(path)


class TestFixerConfig:

    def test_defaults(self, project):
        config = FixerConfig(project_root=project)
        assert config.target_dirs == [project.resolve()]
        assert config.fix and config.fix_duplicate_imports and config.fix_unused_imports
        assert not config.dry_run
        assert config.report_path == Path(DEFAULT_REPORT_PATH)
        assert config.opt_in_rules == []

    def test_should_exclude(self, project):
        config = FixerConfig(project_root=project)
        assert not config.should_exclude(project / 'src' / 'a.ts')
        assert not config.should_exclude(project / 'src' / 'a.tsx')
        assert config.should_exclude(project / 'src' / 'a.js')
        assert config.should_exclude(project / 'node_modules' / 'p' / 'index.ts')
        assert config.should_exclude(project / 'src' / 'a.test.ts')

    def test_include_test_files(self, project):
        config = FixerConfig(project_root=project, include_test_files=True)
        assert not config.should_exclude(project / 'src' / 'a.test.ts')

    def test_outside_target_dirs(self, project):
        (project / 'lib').mkdir()
        config = FixerConfig(project_root=project, target_dirs=[project / 'src'])
        assert not config.should_exclude(project / 'src' / 'a.ts')
        assert config.should_exclude(project / 'lib' / 'a.ts')

    def test_tsconfig_excludes(self, project):
        config = FixerConfig(project_root=project)
        config.add_tsconfig_excludes(TsConfig(
            config_path=project / 'tsconfig.json',
            exclude=['legacy/', 'generated/**', '**/*.gen.ts', 'a/b'],
        ))
        assert 'legacy' in config.exclude_patterns
        assert 'generated' in config.exclude_patterns
        assert not any('*' in pattern for pattern in config.exclude_patterns)
        assert 'a/b' not in config.exclude_patterns
        assert config.should_exclude(project / 'legacy' / 'old.ts')
