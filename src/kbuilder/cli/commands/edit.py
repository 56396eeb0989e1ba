"""Idempotent edits of kernel config and build files from the command line."""

import re
from pathlib import Path

import click

from kbuilder.cli.ensure import Ensure
from kbuilder.cli.output import error_output, user_output
from kbuilder.core.config_file import insert_after_pattern, set_option
from kbuilder.core.line_edit import literal_anchor


@click.command("set-option")
@click.argument("config_file", type=click.Path(path_type=Path, dir_okay=False))
@click.argument("name")
@click.argument("value")
def set_option_cmd(config_file: Path, name: str, value: str) -> None:
    """Set NAME=VALUE in a kernel .config, replacing any previous form.

    Existing "NAME=..." and "# NAME is not set" lines are removed first, so
    running the command again leaves the file unchanged.
    """
    Ensure.path_is_file(config_file, f"Kernel config not found: {config_file}")
    try:
        changed = set_option(config_file, name, value)
    except ValueError as e:
        error_output(str(e))
        raise SystemExit(1) from None

    if changed:
        user_output(f"Set {name}={value} in {config_file}")
    else:
        user_output(f"{name}={value} already set in {config_file}")


@click.command("insert-line")
@click.argument("target_file", type=click.Path(path_type=Path, dir_okay=False))
@click.argument("anchor")
@click.argument("line")
@click.option("--regex", is_flag=True, help="Treat ANCHOR as a regular expression.")
def insert_line_cmd(target_file: Path, anchor: str, line: str, regex: bool) -> None:
    """Insert LINE after the first line matching ANCHOR, once.

    ANCHOR is matched literally unless --regex is given. When no line matches,
    LINE is appended at the end of the file.
    """
    Ensure.path_is_file(target_file)
    Ensure.invariant(line.strip() != "", "LINE must not be empty")
    if regex:
        try:
            pattern = re.compile(anchor)
        except re.error as e:
            error_output(f"Invalid --regex anchor {anchor!r}: {e}")
            raise SystemExit(1) from None
    else:
        pattern = re.compile(literal_anchor(anchor))

    if insert_after_pattern(target_file, pattern, line):
        user_output(f"Inserted into {target_file}: {line}")
    else:
        user_output(f"Already present in {target_file}: {line}")
