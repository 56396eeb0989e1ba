"""Application context with dependency injection."""

from dataclasses import dataclass

from kbuilder.ops.commands import ExternalCommands
from kbuilder.ops.commands_real import RealCommands


@dataclass(frozen=True)
class KBuilderContext:
    """Immutable context holding the dependencies of a kbuilder run.

    Created at the CLI entry point and threaded through the application.
    Tests construct it directly with a fake command layer.
    """

    commands: ExternalCommands


def create_context() -> KBuilderContext:
    """Create the production context backed by real subprocess calls."""
    return KBuilderContext(commands=RealCommands())
