"""tsgraph Configuration and Scanner Tests — CFG-001 through CFG-004."""

import os

from tsgraph.config import TsGraphConfig, find_config, load_config
from tsgraph.scanner import discover_files, expand_paths


class TestCFG001:
    """CFG-001: YAML and JSON config files are loaded.
    Priority: P1
    """

    def test_yaml(self, tmp_path):
        (tmp_path / ".tsgraphrc.yml").write_text(
            "libraries:\n  - lib/lib.es5.d.ts\n"
            "exclude:\n  - '*.spec.ts'\n"
            "parallel: true\nparallel_workers: 3\nformat: summary\nlog_level: debug\n"
            "unknown_key: 1\n")
        config = load_config(start_dir=str(tmp_path))
        assert config.libraries == [os.path.join(str(tmp_path), "lib/lib.es5.d.ts")]
        assert config.exclude == ["*.spec.ts"]
        assert config.parallel is True
        assert config.parallel_workers == 3
        assert config.format == "summary"
        assert config.log_level == "debug"

    def test_json(self, tmp_path):
        path = tmp_path / "tsgraph.config.json"
        path.write_text('{"include": ["src/*"], "format": "pretty"}')
        config = load_config(str(path))
        assert config.include == ["src/*"]
        assert config.format == "pretty"

    def test_defaults_without_file(self, tmp_path):
        assert load_config(str(tmp_path / "none.yml")) == TsGraphConfig()

    def test_malformed_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / ".tsgraphrc.yml"
        path.write_text("libraries: [unclosed\n")
        assert load_config(str(path)) == TsGraphConfig()


class TestCFG002:
    """CFG-002: The nearest config file is found by walking up.
    Priority: P2
    """

    def test_find_in_parent(self, tmp_path):
        (tmp_path / ".tsgraphrc.yaml").write_text("format: json\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(str(nested)) == str(tmp_path / ".tsgraphrc.yaml")


class TestCFG003:
    """CFG-003: Include/exclude patterns.
    Priority: P2
    """

    def test_accepts(self):
        config = TsGraphConfig(include=["src/*"], exclude=["*.spec.ts"])
        assert config.accepts("src/app.ts")
        assert not config.accepts("src/app.spec.ts")
        assert not config.accepts("scripts/build.ts")


class TestCFG004:
    """CFG-004: Directory scanning.
    Priority: P1
    """

    def _tree(self, root):
        (root / "src").mkdir()
        (root / "src" / "a.ts").write_text("")
        (root / "src" / "b.tsx").write_text("")
        (root / "src" / "types.d.ts").write_text("")
        (root / "src" / "notes.md").write_text("")
        (root / "node_modules" / "pkg").mkdir(parents=True)
        (root / "node_modules" / "pkg" / "index.ts").write_text("")
        (root / "gen").mkdir()
        (root / "gen" / "out.ts").write_text("")
        (root / ".gitignore").write_text("# generated\ngen/\n")

    def test_discover(self, tmp_path):
        self._tree(tmp_path)
        files = discover_files(str(tmp_path))
        assert files == [str(tmp_path / "src" / "a.ts"), str(tmp_path / "src" / "b.tsx")]

    def test_expand_paths(self, tmp_path):
        self._tree(tmp_path)
        single = str(tmp_path / "gen" / "out.ts")
        config = TsGraphConfig(exclude=["*.tsx"])
        assert expand_paths([str(tmp_path), single], config) == [
            str(tmp_path / "src" / "a.ts"), single]
