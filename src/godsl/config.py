"""
godsl Build Configuration
=========================

Settings for ``godsl generate``. Configuration can come from:
- Default values (defined here)
- Environment variables (GODSL_BUILD_DIR, GODSL_JOBS)
- Command-line options, which override both
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional
import os


@dataclass
class BuildConfig:
    """
    Configuration for a directory build.

    Attributes:
        build_dir: Output directory; None means <cwd>/build
        build_dir_name: Directory name skipped while searching for sources
        source_suffix: Extension of godsl source files
        target_suffix: Extension of generated files
        max_workers: Upper bound on files transpiled at once
    """

    build_dir: Optional[Path] = None
    build_dir_name: str = "build"
    source_suffix: str = ".godsl"
    target_suffix: str = ".go"
    max_workers: int = 8

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    def resolved_build_dir(self) -> Path:
        """Return the absolute output directory."""
        if self.build_dir is None:
            return Path.cwd() / self.build_dir_name
        return Path(self.build_dir).resolve()

    def with_overrides(self, **overrides) -> "BuildConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> "BuildConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            GODSL_BUILD_DIR: Output directory
            GODSL_JOBS: Maximum parallel workers
        """
        config = cls()

        if build_dir := os.environ.get("GODSL_BUILD_DIR"):
            config.build_dir = Path(build_dir)

        if jobs := os.environ.get("GODSL_JOBS"):
            try:
                config.max_workers = max(1, int(jobs))
            except ValueError:
                raise ValueError(f"GODSL_JOBS must be an integer, got {jobs!r}") from None

        return config
