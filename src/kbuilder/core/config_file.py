"""File-level wrappers around the idempotent line transforms.

Files are read and written as UTF-8. A file is only rewritten when the
transform actually changed its content. Filesystem failures surface as
OSError and are never caught here.
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from kbuilder.core.line_edit import (
    insert_after_pattern_lines,
    join_lines,
    set_option_lines,
    split_lines,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KconfigOption:
    """A single ``.config`` assignment, e.g. CONFIG_MORSE_SDIO=y."""

    name: str
    value: str

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


def _transform_file(path: Path, transform: Callable[[list[str]], list[str]]) -> bool:
    content = path.read_text(encoding="utf-8")
    new_content = join_lines(transform(split_lines(content)))
    if new_content == content:
        return False
    path.write_text(new_content, encoding="utf-8")
    return True


def set_option(path: Path, name: str, value: str) -> bool:
    """Set a kernel config option in a ``.config`` file.

    Removes any ``name=...`` line and any ``# name is not set`` line, then
    appends ``name=value``.

    Returns:
        True if the file was rewritten

    Raises:
        OSError: If the file cannot be read or written
        ValueError: If name is not a bare option identifier
    """
    changed = _transform_file(path, lambda lines: set_option_lines(lines, name, value))
    logger.debug("set_option %s=%s in %s (changed=%s)", name, value, path, changed)
    return changed


def set_options(path: Path, options: Iterable[KconfigOption]) -> None:
    """Apply several options in order with a single read and write."""

    def apply_all(lines: list[str]) -> list[str]:
        for option in options:
            lines = set_option_lines(lines, option.name, option.value)
        return lines

    changed = _transform_file(path, apply_all)
    logger.debug("set_options in %s (changed=%s)", path, changed)


def insert_after_pattern(
    path: Path,
    anchor_pattern: str | re.Pattern[str],
    new_line: str,
) -> bool:
    """Insert new_line after the first line matching anchor_pattern.

    No-op if new_line is already present verbatim; appends at end of file if
    the anchor is not found.

    Returns:
        True if the file was rewritten

    Raises:
        OSError: If the file cannot be read or written
    """
    changed = _transform_file(
        path, lambda lines: insert_after_pattern_lines(lines, anchor_pattern, new_line)
    )
    logger.debug("insert_after_pattern %r in %s (changed=%s)", new_line, path, changed)
    return changed
