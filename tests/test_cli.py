"""
Tests for the godsl Command-Line Interface
==========================================

These tests drive the ``godsl`` click group with CliRunner and check the
directory build helpers it is made of.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from godsl.cli.godsl import (
    FileTask,
    collect_source_files,
    main,
    remove_build_dir,
    transpile_files_parallel,
)
from godsl.config import BuildConfig
from godsl.errors import BuildError
from godsl.transpiler.compiler import transpile_file


GOOD_SOURCE = 'package main\n\nfunc main() {\n\ttry {\n\t\twork()\n\t} catch {\n\t}\n}\n'
BAD_SOURCE = "package main\n\nfunc main( {\n}\n"


# =============================================================================
# Fixtures and Helpers
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's GODSL_* variables out of the tests."""
    monkeypatch.delenv("GODSL_BUILD_DIR", raising=False)
    monkeypatch.delenv("GODSL_JOBS", raising=False)


@pytest.fixture
def project(tmp_path) -> Path:
    """A small source tree with a nested package and an old build dir."""
    root = tmp_path / "proj"
    (root / "pkg" / "util").mkdir(parents=True)
    (root / "build").mkdir()
    (root / "main.godsl").write_text(GOOD_SOURCE, encoding="utf-8")
    (root / "pkg" / "util" / "util.godsl").write_text(
        "package util\n\nfunc Twice(n int) int {\n\treturn n * 2\n}\n",
        encoding="utf-8",
    )
    (root / "build" / "stale.godsl").write_text(BAD_SOURCE, encoding="utf-8")
    (root / "README.md").write_text("not a source file", encoding="utf-8")
    return root


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def failing_transpile_file(source: str) -> str:
    """Stand-in for transpile_file that crashes on sources containing 'explode'."""
    if "explode" in source:
        raise RuntimeError("generator crashed")
    return transpile_file(source)


# =============================================================================
# Source Collection Tests
# =============================================================================

class TestCollectSourceFiles:
    """Tests for collect_source_files()."""

    def test_mirrors_tree_into_build_dir(self, project, tmp_path):
        out = tmp_path / "out"
        tasks = collect_source_files(project, BuildConfig(build_dir=out))

        assert [t.source.relative_to(project.resolve()) for t in tasks] == [
            Path("main.godsl"),
            Path("pkg/util/util.godsl"),
        ]
        assert [t.target for t in tasks] == [
            out.resolve() / "main.go",
            out.resolve() / "pkg" / "util" / "util.go",
        ]

    def test_skips_build_directories(self, project, tmp_path):
        tasks = collect_source_files(project, BuildConfig(build_dir=tmp_path / "out"))
        assert all("build" not in t.source.parts for t in tasks)

    def test_skips_custom_build_dir_inside_root(self, project):
        out = project / "generated"
        write(out / "copy.godsl", GOOD_SOURCE)
        tasks = collect_source_files(project, BuildConfig(build_dir=out))
        assert len(tasks) == 2

    def test_empty_tree(self, tmp_path):
        assert collect_source_files(tmp_path, BuildConfig(build_dir=tmp_path / "out")) == []


# =============================================================================
# Parallel Transpile Tests
# =============================================================================

class TestTranspileFilesParallel:
    """Tests for transpile_files_parallel()."""

    def test_writes_every_file(self, tmp_path):
        tasks = [
            FileTask(write(tmp_path / f"src/f{i}.godsl", f"package p{i}\n"), tmp_path / f"out/f{i}.go")
            for i in range(5)
        ]
        seen = []

        completed = transpile_files_parallel(tasks, max_workers=2, on_success=seen.append)

        assert sorted(completed, key=lambda t: t.source) == tasks
        assert sorted(seen, key=lambda t: t.source) == tasks
        for i in range(5):
            assert (tmp_path / f"out/f{i}.go").read_text(encoding="utf-8") == f"package p{i}\n"

    def test_collects_all_failures(self, tmp_path):
        tasks = [
            FileTask(write(tmp_path / "a.godsl", BAD_SOURCE), tmp_path / "out/a.go"),
            FileTask(write(tmp_path / "b.godsl", "package b\n"), tmp_path / "out/b.go"),
            FileTask(write(tmp_path / "c.godsl", "x := )"), tmp_path / "out/c.go"),
        ]

        with pytest.raises(BuildError) as exc_info:
            transpile_files_parallel(tasks)

        failed = [path for path, _ in exc_info.value.failures]
        assert failed == [str(tmp_path / "a.godsl"), str(tmp_path / "c.godsl")]
        assert "Parser errors:" in exc_info.value.failures[0][1]
        assert (tmp_path / "out/b.go").exists()

    def test_unexpected_exception_is_a_failure(self, tmp_path, monkeypatch):
        """An internal error in one worker is reported like any other failure."""
        monkeypatch.setattr("godsl.cli.godsl.transpile_file", failing_transpile_file)
        tasks = [
            FileTask(write(tmp_path / "a.godsl", "package a\n"), tmp_path / "out/a.go"),
            FileTask(write(tmp_path / "b.godsl", "explode\n"), tmp_path / "out/b.go"),
        ]

        with pytest.raises(BuildError) as exc_info:
            transpile_files_parallel(tasks, max_workers=1)

        assert exc_info.value.failures == [
            (str(tmp_path / "b.godsl"), "internal error: RuntimeError: generator crashed"),
        ]
        assert (tmp_path / "out/a.go").exists()

    def test_missing_source_is_a_failure(self, tmp_path):
        tasks = [FileTask(tmp_path / "gone.godsl", tmp_path / "out/gone.go")]
        with pytest.raises(BuildError, match="1 file failed"):
            transpile_files_parallel(tasks)


# =============================================================================
# Build Directory Cleanup Tests
# =============================================================================

class TestRemoveBuildDir:
    """Tests for remove_build_dir()."""

    def test_removes_directory(self, tmp_path):
        out = tmp_path / "out"
        write(out / "x.go", "package x\n")
        assert remove_build_dir(out, tmp_path / "src")
        assert not out.exists()

    def test_missing_directory(self, tmp_path):
        assert not remove_build_dir(tmp_path / "out", tmp_path)

    def test_refuses_to_remove_source_root(self, tmp_path):
        write(tmp_path / "main.godsl", GOOD_SOURCE)
        assert not remove_build_dir(tmp_path, tmp_path)
        assert not remove_build_dir(tmp_path, tmp_path / "nested")
        assert (tmp_path / "main.godsl").exists()


# =============================================================================
# generate Command Tests
# =============================================================================

class TestGenerateCommand:
    """Tests for ``godsl generate``."""

    def test_generates_tree(self, project, tmp_path):
        out = tmp_path / "out"
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(project), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert "Found 2 .godsl file(s)" in result.output
        assert result.output.count("✓") == 2
        assert "Generated 2 file(s)" in result.output

        go_main = (out / "main.go").read_text(encoding="utf-8")
        assert "func main() error {" in go_main
        assert (out / "pkg" / "util" / "util.go").exists()
        assert not (out / "build").exists()

    def test_default_build_dir_is_cwd_build(self, tmp_path, monkeypatch):
        write(tmp_path / "main.godsl", GOOD_SOURCE)
        monkeypatch.chdir(tmp_path)

        result = CliRunner().invoke(main, ["generate"])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "build" / "main.go").exists()

    def test_build_dir_from_environment(self, project, tmp_path, monkeypatch):
        out = tmp_path / "from-env"
        monkeypatch.setenv("GODSL_BUILD_DIR", str(out))

        result = CliRunner().invoke(main, ["generate", str(project)])

        assert result.exit_code == 0, result.output
        assert (out / "main.go").exists()

    def test_no_sources(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = CliRunner().invoke(main, ["generate", str(empty), "-o", str(tmp_path / "out")])

        assert result.exit_code == 0
        assert "No .godsl files found" in result.output
        assert not (tmp_path / "out").exists()

    def test_failure_removes_build_dir(self, project, tmp_path):
        write(project / "broken.godsl", BAD_SOURCE)
        out = tmp_path / "out"

        result = CliRunner().invoke(main, ["generate", str(project), "-o", str(out), "-j", "1"])

        assert result.exit_code == 1
        assert "1 file failed to transpile" in result.output
        assert "broken.godsl" in result.output
        assert "expected next token to be IDENT, got LBRACE instead" in result.output
        assert not out.exists()

    def test_internal_error_removes_build_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr("godsl.cli.godsl.transpile_file", failing_transpile_file)
        src = tmp_path / "src"
        write(src / "a.godsl", GOOD_SOURCE)
        write(src / "b.godsl", "package b\n\n// explode\n")
        out = tmp_path / "out"

        result = CliRunner().invoke(main, ["generate", str(src), "-o", str(out), "-j", "1"])

        assert result.exit_code == 1
        assert "internal error: RuntimeError: generator crashed" in result.output
        assert not out.exists()

    def test_long_expression_builds(self, tmp_path):
        src = tmp_path / "src"
        chain = " + ".join(["s"] * 2000)
        write(src / "a.godsl", GOOD_SOURCE)
        write(src / "b.godsl", f"package main\n\nfunc f(s string) string {{\n\treturn {chain}\n}}\n")
        out = tmp_path / "out"

        result = CliRunner().invoke(main, ["generate", str(src), "-o", str(out), "-j", "1"])

        assert result.exit_code == 0, result.output
        assert chain in (out / "b.go").read_text(encoding="utf-8")

    def test_invalid_jobs_option(self, project, tmp_path):
        result = CliRunner().invoke(main, ["generate", str(project), "-j", "0"])
        assert result.exit_code == 2

    def test_invalid_jobs_environment(self, project, tmp_path, monkeypatch):
        monkeypatch.setenv("GODSL_JOBS", "many")
        result = CliRunner().invoke(main, ["generate", str(project), "-o", str(tmp_path / "out")])

        assert result.exit_code == 2
        assert "GODSL_JOBS" in result.output

    def test_missing_root(self, tmp_path):
        result = CliRunner().invoke(main, ["generate", str(tmp_path / "nope")])
        assert result.exit_code == 2


# =============================================================================
# transpile Command Tests
# =============================================================================

class TestTranspileCommand:
    """Tests for ``godsl transpile``."""

    def test_prints_go_source(self, tmp_path):
        source = write(tmp_path / "main.godsl", "package main\n")
        result = CliRunner().invoke(main, ["transpile", str(source)])

        assert result.exit_code == 0
        assert result.output == "package main\n"

    def test_writes_output_file(self, tmp_path):
        source = write(tmp_path / "main.godsl", GOOD_SOURCE)
        target = tmp_path / "out" / "main.go"

        result = CliRunner().invoke(main, ["transpile", str(source), "-o", str(target)])

        assert result.exit_code == 0
        assert "Transpiled" in result.output
        assert "err := func() error {" in target.read_text(encoding="utf-8")

    def test_tokens(self, tmp_path):
        source = write(tmp_path / "main.godsl", "x := 1")
        result = CliRunner().invoke(main, ["transpile", "--tokens", str(source)])

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "Token(IDENT, 'x', 1:1)",
            "Token(DEFINE, ':=', 1:3)",
            "Token(INT, '1', 1:6)",
            "Token(EOF, '', 1:7)",
        ]

    def test_ast(self, tmp_path):
        source = write(tmp_path / "main.godsl", "package main\n\nfunc f() {\n\tthrow \"x\"\n}\n")
        result = CliRunner().invoke(main, ["transpile", "--ast", str(source)])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "Program"
        assert "  PackageStatement: package main" in lines
        assert "  Function: f()" in lines
        assert '      ThrowStatement: throw "x"' in lines

    def test_parse_error(self, tmp_path):
        source = write(tmp_path / "bad.godsl", BAD_SOURCE)
        result = CliRunner().invoke(main, ["transpile", str(source)])

        assert result.exit_code == 1
        assert "Parser errors:" in result.output
        assert "bad.godsl" in result.output

    def test_ast_parse_error(self, tmp_path):
        source = write(tmp_path / "bad.godsl", BAD_SOURCE)
        result = CliRunner().invoke(main, ["transpile", "--ast", str(source)])

        assert result.exit_code == 1
        assert "Parser errors:" in result.output


# =============================================================================
# Version and Help Tests
# =============================================================================

class TestVersionAndHelp:
    """Tests for version reporting and help output."""

    def test_version_command(self):
        result = CliRunner().invoke(main, ["version"])
        assert result.exit_code == 0
        assert result.output == "Version: 1.0.0\n"

    def test_version_option(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "godsl, version 1.0.0" in result.output

    def test_help_lists_commands(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("generate", "transpile", "version"):
            assert command in result.output

    def test_verbose_flag(self):
        result = CliRunner().invoke(main, ["-v", "version"])
        assert result.exit_code == 0
