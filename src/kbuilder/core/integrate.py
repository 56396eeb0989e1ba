"""Integration of an out-of-tree driver into the kernel source tree."""

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from kbuilder.core.config_file import insert_after_pattern
from kbuilder.core.line_edit import literal_anchor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildRegistration:
    """One line registering the driver with the kernel build system.

    Attributes:
        relative_file: Build file relative to the kernel root,
            e.g. "drivers/net/wireless/Kconfig"
        anchor_line: Existing line (matched literally) to insert after
        new_line: Registration line to insert
    """

    relative_file: str
    anchor_line: str
    new_line: str


def integrate_driver(
    source_dir: Path,
    kernel_root: Path,
    vendor_subpath: str,
    registrations: Iterable[BuildRegistration],
) -> Path:
    """Copy driver sources into the kernel tree and register them.

    Existing files with the same relative path are overwritten so that a
    re-run picks up an updated driver download. Registration lines are only
    inserted once.

    Returns:
        The driver directory inside the kernel tree

    Raises:
        FileNotFoundError: If source_dir does not exist
        OSError: If copying or editing build files fails
    """
    # LBYL: copytree would otherwise fail with a less specific error
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Driver source directory not found: {source_dir}")

    target = kernel_root / vendor_subpath
    target.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source_dir, target, dirs_exist_ok=True)
    logger.debug("Copied %s into %s", source_dir, target)

    for registration in registrations:
        insert_after_pattern(
            kernel_root / registration.relative_file,
            literal_anchor(registration.anchor_line),
            registration.new_line,
        )

    return target


def install_extra_file(source: Path, kernel_root: Path, vendor_subpath: str) -> Path:
    """Copy a single file (e.g. a missing header) into the driver directory."""
    target_dir = kernel_root / vendor_subpath
    target_dir.mkdir(parents=True, exist_ok=True)
    destination = target_dir / source.name
    shutil.copy2(source, destination)
    return destination
