from __future__ import annotations

from pathlib import Path

from runtime_class.config import DiscoveryConfig
from runtime_class.sync import GlobFilter, discover_files, expand_braces, matches_filters


def _write(path: Path, text: str = "export {};\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_discovery_honors_includes_excludes_and_stable_order(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "z.tsx")
    _write(tmp_path / "src" / "a.ts")
    _write(tmp_path / "main.js")
    _write(tmp_path / "README.md", "# readme\n")
    _write(tmp_path / "node_modules" / "pkg" / "index.js")
    _write(tmp_path / "dist" / "bundle.js")

    records = discover_files(tmp_path, DiscoveryConfig())

    assert [record.identity for record in records] == ["main.js", "src/a.ts", "src/z.tsx"]
    assert records[0].full_path == tmp_path.resolve() / "main.js"


def test_discovery_profile_counts(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "a.ts")
    _write(tmp_path / "src" / "notes.txt", "x\n")
    _write(tmp_path / "vendor" / "b.ts")

    profile: dict[str, object] = {}
    config = DiscoveryConfig(include_globs=("**/*.ts",), exclude_globs=("**/vendor/**",))
    records = discover_files(tmp_path, config, profile=profile)

    assert [record.identity for record in records] == ["src/a.ts"]
    assert profile["matched_files"] == 1
    assert profile["not_included"] == 1
    assert profile["pruned_directories"] == 1
    assert isinstance(profile["total_seconds"], float)


def test_empty_include_globs_include_everything(tmp_path: Path) -> None:
    _write(tmp_path / "a.txt", "x\n")
    _write(tmp_path / "b.ts")

    records = discover_files(tmp_path, DiscoveryConfig(include_globs=(), exclude_globs=()))

    assert [record.identity for record in records] == ["a.txt", "b.ts"]


def test_matches_filters_for_notifications() -> None:
    config = DiscoveryConfig()

    assert matches_filters("src/App.tsx", config) is True
    assert matches_filters("App.vue", config) is True
    assert matches_filters("node_modules/react/index.js", config) is False
    assert matches_filters("src/styles.css", config) is False


def test_brace_globs_expand_to_alternatives() -> None:
    assert expand_braces("src/**/*.{ts,tsx}") == ["src/**/*.ts", "src/**/*.tsx"]
    assert expand_braces("{a,b/{c,d}}/x") == ["a/x", "b/c/x", "b/d/x"]
    assert expand_braces("plain/*.js") == ["plain/*.js"]
    assert expand_braces("broken{a,b") == ["broken{a,b"]


def test_glob_filter_with_braces_and_root_level_files() -> None:
    globs = GlobFilter(
        include_globs=("**/*.{ts,tsx}",),
        exclude_globs=("**/{dist,build}/**",),
    )

    assert globs.matches("App.tsx") is True
    assert globs.matches("src/deep/util.ts") is True
    assert globs.matches("src/main.js") is False
    assert globs.matches("build/App.tsx") is False
    assert globs.matches("packages/ui/dist/index.ts") is False
    assert globs.prunes_directory("dist", "packages/ui/dist/") is True
    assert globs.prunes_directory("src", "src/") is False
