"""Idempotent line transforms for kernel configuration and build files.

All functions here are pure: they take a list of lines (without line
terminators) and return a new list. Nothing touches the filesystem, so the
transforms can be tested directly. See kbuilder.core.config_file for the
file-level wrappers.
"""

import re

_OPTION_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


def validate_option_name(name: str) -> str:
    """Return name unchanged if it is a bare option identifier.

    Raises:
        ValueError: If name is empty or contains anything but letters, digits
            and underscores
    """
    if not _OPTION_NAME_RE.match(name):
        raise ValueError(f"Invalid option name: {name!r}")
    return name


def is_option_line(line: str, name: str) -> bool:
    """Check whether line assigns or explicitly unsets option name.

    Matches ``NAME=<anything>`` and ``# NAME is not set``. Options that only
    share a prefix with name (``NAME_EXTRA=y``) do not match.
    """
    return line.startswith(f"{name}=") or line == f"# {name} is not set"


def set_option_lines(lines: list[str], name: str, value: str) -> list[str]:
    """Make ``name=value`` the single definition of name.

    Drops every existing assignment and every ``is not set`` comment for the
    option, then appends the new assignment. Applying the transform twice gives
    the same result as applying it once.

    Args:
        lines: Config file lines without terminators
        name: Bare option identifier, e.g. "CONFIG_CRYPTO_CCM"
        value: Literal value text, e.g. "y", "m" or '"string"'

    Returns:
        New list of lines

    Raises:
        ValueError: If name is not a bare identifier
    """
    validate_option_name(name)
    kept = [line for line in lines if not is_option_line(line, name)]
    kept.append(f"{name}={value}")
    return kept


def insert_after_pattern_lines(
    lines: list[str],
    anchor_pattern: str | re.Pattern[str],
    new_line: str,
) -> list[str]:
    """Insert new_line after the first line matching anchor_pattern.

    If new_line is already present verbatim the lines are returned unchanged.
    If no line matches the anchor, new_line is appended at the end.

    Args:
        lines: File lines without terminators
        anchor_pattern: Regular expression searched within each line
        new_line: Line to insert

    Returns:
        New list of lines
    """
    if new_line in lines:
        return list(lines)

    pattern = re.compile(anchor_pattern) if isinstance(anchor_pattern, str) else anchor_pattern
    for index, line in enumerate(lines):
        if pattern.search(line):
            return [*lines[: index + 1], new_line, *lines[index + 1 :]]

    return [*lines, new_line]


def literal_anchor(line: str) -> str:
    """Build an anchor pattern that matches line literally."""
    return re.escape(line)


def split_lines(content: str) -> list[str]:
    """Split file content on line feeds only, without terminators.

    Other characters str.splitlines() treats as breaks (form feed, vertical
    tab, U+2028 and so on) stay inside their line.
    """
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def join_lines(lines: list[str]) -> str:
    """Join lines back into file content, newline-terminated."""
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
