"""Prerequisite checks for the external tools the build procedure drives."""

from collections.abc import Iterable

from kbuilder.core.errors import MissingToolError
from kbuilder.ops.commands import ExternalCommands

# Tools needed for every run.
REQUIRED_TOOLS: tuple[str, ...] = ("git", "curl", "unzip", "make", "patch")

# Tools needed only when installing the kernel and updating the bootloader.
INSTALL_TOOLS: tuple[str, ...] = ("sudo", "update-grub")

# Debian/Ubuntu package providing each tool, where it differs from the tool name.
_TOOL_PACKAGES: dict[str, str] = {
    "update-grub": "grub2-common",
}


def package_for_tool(tool: str) -> str:
    return _TOOL_PACKAGES.get(tool, tool)


def check_prerequisites(commands: ExternalCommands, tools: Iterable[str]) -> None:
    """Verify every tool resolves on PATH.

    Raises:
        MissingToolError: For the first tool that cannot be found
    """
    for tool in tools:
        if commands.which(tool) is None:
            raise MissingToolError(tool, package_for_tool(tool))


def required_tools(install: bool) -> tuple[str, ...]:
    if install:
        return REQUIRED_TOOLS + INSTALL_TOOLS
    return REQUIRED_TOOLS
