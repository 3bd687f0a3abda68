"""
godsl - Transpiler Command-Line Interface
========================================

Command-line front end for the godsl transpiler.

Usage Examples
--------------
Transpile every .godsl file below the current directory into ./build:
    $ godsl generate

Transpile a project directory with four workers into a custom directory:
    $ godsl generate src/ -o out/ -j 4

Transpile one file to stdout, or inspect its tokens or AST:
    $ godsl transpile main.godsl
    $ godsl transpile --tokens main.godsl
    $ godsl transpile --ast main.godsl

Show the version:
    $ godsl version

Directory Builds
----------------
``generate`` mirrors the source tree into the build directory, replacing
the .godsl extension with .go. Directories named ``build`` are not
searched. Files are transpiled in parallel with a bounded worker pool.
If any file fails, every failure is reported and the build directory is
removed, so a build directory never holds a partial result.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import shutil
from typing import Callable, Optional

import click

from godsl import __version__
from godsl.cli.errors import handle_cli_exception
from godsl.config import BuildConfig
from godsl.errors import BuildError, GodslError, TranspileError
from godsl.transpiler.ast import ASTPrinter
from godsl.transpiler.compiler import transpile_file, transpile_path
from godsl.transpiler.lexer import Lexer
from godsl.transpiler.parser import parse_source


logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context
# =============================================================================

class Context:
    """Shared context for CLI commands."""

    def __init__(self) -> None:
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(name)s: %(message)s" if self.verbose else "%(levelname)s: %(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Build Orchestration
# =============================================================================

@dataclass(frozen=True)
class FileTask:
    """
    One file to transpile.

    Attributes:
        source: Path of the .godsl input
        target: Path of the .go output
    """
    source: Path
    target: Path


def collect_source_files(root: Path, config: BuildConfig) -> list[FileTask]:
    """
    Find every source file below root and map it into the build directory.

    Directories named like the build directory, and the build directory
    itself, are skipped.

    Returns:
        Tasks sorted by source path
    """
    root = Path(root).resolve()
    build_dir = config.resolved_build_dir()
    tasks: list[FileTask] = []

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            name for name in dirnames
            if name != config.build_dir_name and (current / name).resolve() != build_dir
        )
        for name in sorted(filenames):
            if not name.endswith(config.source_suffix):
                continue
            source = current / name
            relative = source.relative_to(root).with_suffix(config.target_suffix)
            tasks.append(FileTask(source, build_dir / relative))

    logger.debug(f"found {len(tasks)} source file(s) under {root}")
    return tasks


def transpile_task(task: FileTask) -> FileTask:
    """Transpile one file and write its output, creating directories."""
    output = transpile_file(task.source.read_text(encoding="utf-8"))
    task.target.parent.mkdir(parents=True, exist_ok=True)
    task.target.write_text(output, encoding="utf-8")
    logger.debug(f"wrote {task.target} ({len(output)} chars)")
    return task


def transpile_files_parallel(
    tasks: list[FileTask],
    max_workers: int = 8,
    on_success: Optional[Callable[[FileTask], None]] = None,
) -> list[FileTask]:
    """
    Transpile tasks concurrently with at most max_workers threads.

    on_success is called from the calling thread as each file finishes.

    Returns:
        Completed tasks in completion order

    Raises:
        BuildError: After all tasks have run, if any of them failed
    """
    completed: list[FileTask] = []
    failures: list[tuple[str, str]] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(transpile_task, task): task for task in tasks}
        for future in as_completed(futures):
            task = futures[future]
            try:
                future.result()
            except (GodslError, OSError, UnicodeDecodeError) as e:
                logger.debug(f"{task.source}: {e}")
                failures.append((str(task.source), str(e)))
            except Exception as e:
                logger.warning(f"{task.source}: internal error: {e!r}")
                failures.append((str(task.source), f"internal error: {type(e).__name__}: {e}"))
            else:
                completed.append(task)
                if on_success is not None:
                    on_success(task)

    if failures:
        raise BuildError(sorted(failures))
    return completed


def remove_build_dir(build_dir: Path, root: Path) -> bool:
    """
    Delete a failed build's output directory.

    The directory is left alone when it contains the source root.

    Returns:
        True if the directory was removed
    """
    build_dir = Path(build_dir).resolve()
    root = Path(root).resolve()

    if not build_dir.exists():
        return False
    if build_dir == root or build_dir in root.parents:
        logger.warning(f"not removing {build_dir}: it contains the source tree")
        return False

    shutil.rmtree(build_dir)
    logger.info(f"removed build directory {build_dir}")
    return True


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(version=__version__, prog_name="godsl")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Transpile godsl (Go with try/catch/throw/finally) into plain Go.
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Generate Command
# =============================================================================

@main.command()
@click.argument(
    "root",
    required=False,
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "-o", "--build-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: ./build, or $GODSL_BUILD_DIR)",
)
@click.option(
    "-j", "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum files transpiled at once (default: 8, or $GODSL_JOBS)",
)
@pass_context
def generate(ctx: Context, root: Path, build_dir: Optional[Path], jobs: Optional[int]) -> None:
    """
    Transpile every .godsl file under ROOT into the build directory.

    ROOT defaults to the current directory.

    \b
    Examples:
        godsl generate                 # ./**/*.godsl -> ./build/**/*.go
        godsl generate src -o out      # src/**/*.godsl -> out/**/*.go
        godsl generate -j 2            # At most two files at once
    """
    try:
        config = BuildConfig.from_env().with_overrides(build_dir=build_dir, max_workers=jobs)
    except ValueError as e:
        handle_cli_exception(click.BadParameter(str(e)), ctx.verbose)

    tasks = collect_source_files(root, config)
    if not tasks:
        click.echo(f"No {config.source_suffix} files found in {root}")
        return

    click.echo(f"Found {len(tasks)} {config.source_suffix} file(s)")

    def report(task: FileTask) -> None:
        click.echo(f"✓ {task.source} -> {task.target}")

    try:
        transpile_files_parallel(tasks, config.max_workers, on_success=report)
    except Exception as e:
        # BuildError and anything unexpected alike leave no partial output
        remove_build_dir(config.resolved_build_dir(), root)
        handle_cli_exception(e, ctx.verbose)

    click.echo(f"Generated {len(tasks)} file(s) in {config.resolved_build_dir()}")


# =============================================================================
# Transpile Command
# =============================================================================

@main.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token stream and exit (for debugging)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print the AST and exit (for debugging)",
)
@pass_context
def transpile(
    ctx: Context,
    input_file: Path,
    output: Optional[Path],
    tokens: bool,
    ast: bool,
) -> None:
    """
    Transpile a single INPUT_FILE.

    \b
    Examples:
        godsl transpile main.godsl             # Go source on stdout
        godsl transpile main.godsl -o main.go  # Write to a file
        godsl transpile --ast main.godsl       # Dump the AST
    """
    try:
        if tokens:
            source = input_file.read_text(encoding="utf-8")
            for token in Lexer(source).tokenize():
                click.echo(repr(token))
            return

        if ast:
            source = input_file.read_text(encoding="utf-8")
            program, errors = parse_source(source)
            if errors:
                raise TranspileError(errors, str(input_file))
            click.echo(ASTPrinter().print(program))
            return

        result = transpile_path(input_file)

        if output is None:
            click.echo(result, nl=False)
        else:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(result, encoding="utf-8")
            click.echo(f"Transpiled {input_file} -> {output}")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Version Command
# =============================================================================

@main.command()
def version() -> None:
    """Show the godsl version."""
    click.echo(f"Version: {__version__}")


if __name__ == "__main__":
    main()
