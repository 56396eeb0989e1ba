"""Kernel configuration, compilation and installation steps."""

import os
from pathlib import Path

from kbuilder.ops.commands import ExternalCommands

# Fills every unset option with its default without prompting; the
# non-interactive equivalent of `yes '' | make oldconfig`.
DEFAULT_CONFIG_TARGET = "olddefconfig"


def default_jobs() -> int:
    return os.cpu_count() or 1


def refresh_kernel_config(
    commands: ExternalCommands,
    kernel_root: Path,
    target: str = DEFAULT_CONFIG_TARGET,
) -> None:
    """Bring a downloaded base .config up to date with the kernel tree."""
    commands.make(kernel_root, [target])


def build_kernel(
    commands: ExternalCommands,
    kernel_root: Path,
    jobs: int | None = None,
) -> None:
    """Compile kernel and modules.

    Raises:
        BuildError: If compilation fails
    """
    commands.make(kernel_root, [], jobs=jobs if jobs is not None else default_jobs())


def install_kernel(commands: ExternalCommands, kernel_root: Path) -> None:
    """Install modules, install the kernel, then update the bootloader.

    Each is a separate fatal step. Requires sudo.

    Raises:
        BuildError: If any step fails
    """
    commands.make(kernel_root, ["modules_install"], privileged=True)
    commands.make(kernel_root, ["install"], privileged=True)
    commands.update_bootloader()
