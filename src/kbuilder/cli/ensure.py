"""CLI error handling utilities with styled output.

This module provides the Ensure class for asserting invariants in CLI commands
with consistent, user-friendly error messages. All errors use red "Error:" prefix
for visual consistency.
"""

from pathlib import Path

from kbuilder.cli.output import error_output


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Args:
            condition: Boolean condition to check
            error_message: Error message to display if condition is false.
                          "Error: " prefix will be added automatically in red.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            error_output(error_message)
            raise SystemExit(1)

    @staticmethod
    def path_is_file(path: Path, error_message: str | None = None) -> None:
        """Ensure path exists and is a regular file, otherwise output styled error and exit.

        Example:
            >>> Ensure.path_is_file(config_path, f"Kernel config not found: {config_path}")
        """
        if not path.is_file():
            if error_message is None:
                error_message = f"File not found: {path}"
            error_output(error_message)
            raise SystemExit(1)

    @staticmethod
    def positive(value: int | None, option_name: str) -> None:
        """Ensure an optional integer option is positive when given.

        Raises:
            SystemExit: If value is zero or negative
        """
        if value is not None and value <= 0:
            error_output(f"{option_name} must be a positive integer, got {value}")
            raise SystemExit(1)
