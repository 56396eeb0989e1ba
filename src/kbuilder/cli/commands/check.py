"""The check command: verify the external tools a build needs."""

import click

from kbuilder.cli.output import error_output, user_output
from kbuilder.core.context import KBuilderContext
from kbuilder.core.errors import MissingToolError
from kbuilder.core.prerequisites import check_prerequisites, required_tools


@click.command("check")
@click.option("--no-install", is_flag=True, help="Skip tools only needed for installing.")
@click.pass_obj
def check_cmd(ctx: KBuilderContext, no_install: bool) -> None:
    """Check that every required external tool is on PATH."""
    tools = required_tools(install=not no_install)
    user_output("--- Checking for necessary tools ---")
    try:
        check_prerequisites(ctx.commands, tools)
    except MissingToolError as e:
        error_output(f"{e} Aborting.")
        raise SystemExit(1) from None

    for tool in tools:
        user_output(f"  ✓ {tool}: {ctx.commands.which(tool)}")
    user_output("All required tools are present.")
