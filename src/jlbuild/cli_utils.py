"""CLI utility functions for jlbuild.

This module provides common utilities used by the command-line interface:
- Merging jlbuild.ini options with command-line options
- Error handling and formatting
- Logging setup
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from jlbuild.config import BuildConfigFile, find_config_file
from jlbuild.errors import (
    BuildEnvironmentError,
    ConfigurationError,
    JlbuildError,
    StageFailure,
    StagingError,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class OptionMerger:
    """Combines options from jlbuild.ini and the command line."""

    @staticmethod
    def load_file_options(
        config_path: Optional[Path],
        profile: Optional[str],
        search_dir: Path,
    ) -> Dict[str, Any]:
        """Load options from an explicit or discovered jlbuild.ini.

        Args:
            config_path: Explicit --config path, or None to look in search_dir
            profile: Optional profile section to apply
            search_dir: Directory searched for jlbuild.ini when no path is given

        Returns:
            Options from the file, or an empty dict when there is no file

        Raises:
            ConfigFileError: If the file is invalid or the profile is missing
        """
        path = config_path or find_config_file(search_dir)
        if path is None:
            if profile:
                raise ConfigurationError(
                    f"--profile {profile} given but no jlbuild.ini found in {search_dir}"
                )
            return {}
        return BuildConfigFile(path).get_options(profile)

    @staticmethod
    def merge(file_options: Dict[str, Any], cli_options: Dict[str, Any]) -> Dict[str, Any]:
        """Command-line values override file values; None means "not given"."""
        merged = dict(file_options)
        for key, value in cli_options.items():
            if value is not None:
                merged[key] = value
        return merged


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Configuration error", "Build failed!")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        """Print formatted success message."""
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        """Print formatted warning message."""
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def error_title(error: JlbuildError) -> str:
        """Pick a title for a pipeline error by its category."""
        if isinstance(error, ConfigurationError):
            return "Configuration error"
        if isinstance(error, BuildEnvironmentError):
            return "Environment error"
        if isinstance(error, StageFailure):
            return "Build failed!"
        if isinstance(error, StagingError):
            return "Filesystem error"
        return "Error"

    @staticmethod
    def handle_pipeline_error(error: JlbuildError) -> None:
        """Handle a JlbuildError with standard formatting and exit 1."""
        ErrorFormatter.print_error(ErrorFormatter.error_title(error), str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates paths given on the command line."""

    @staticmethod
    def validate_config_file(config_path: Optional[Path]) -> None:
        """Validate that an explicit --config file exists.

        Raises:
            SystemExit: If the path doesn't exist or isn't a file
        """
        if config_path is None:
            return
        if not config_path.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path does not exist: {config_path}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not config_path.is_file():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path is not a file: {config_path}{ErrorFormatter.RESET}"
            )
            sys.exit(2)


def setup_logging(level: str = "WARNING") -> None:
    """Send diagnostic logging to stderr at the given level."""
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level.upper())
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)
