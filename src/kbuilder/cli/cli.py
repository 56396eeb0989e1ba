import logging
import os

import click

from kbuilder.cli.commands.check import check_cmd
from kbuilder.cli.commands.edit import insert_line_cmd, set_option_cmd
from kbuilder.cli.commands.run import run_cmd
from kbuilder.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

# Enable debug logging if KBUILDER_DEBUG environment variable is set
if os.getenv("KBUILDER_DEBUG"):
    logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="kbuilder")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Build a Linux kernel with an integrated vendor Wi-Fi driver."""
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context()


cli.add_command(check_cmd)
cli.add_command(insert_line_cmd)
cli.add_command(run_cmd)
cli.add_command(set_option_cmd)


def main() -> None:
    """CLI entry point used by the `kbuilder` console script."""
    cli()
