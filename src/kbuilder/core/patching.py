"""Application of ordered patch sets to a source tree.

Patch application is not idempotent: re-running against an already patched
tree fails. That is patch(1)'s behavior and it is surfaced, not masked.
"""

import logging
import shutil
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from kbuilder.core.errors import PatchApplicationError
from kbuilder.ops.commands import ExternalCommands

logger = logging.getLogger(__name__)

PATCH_GLOB = "*.patch"


@dataclass(frozen=True)
class PatchPolicy:
    """How patch(1) is invoked for a patch set.

    Attributes:
        strip: Leading path components to strip (-p)
        fuzz: Context fuzz factor (-F), or None for patch's own default
        remove_empty_files: Remove files left empty after patching (-E)
        forward_only: Fail on already-applied patches instead of reversing (--forward)
    """

    strip: int = 1
    fuzz: int | None = None
    remove_empty_files: bool = False
    forward_only: bool = True

    def flags(self) -> list[str]:
        flags = [f"-p{self.strip}"]
        if self.fuzz is not None:
            flags.append(f"-F{self.fuzz}")
        if self.remove_empty_files:
            flags.append("-E")
        if self.forward_only:
            flags.append("--forward")
        return flags


@dataclass(frozen=True)
class PatchSet:
    """An ordered sequence of patch files applied with one policy."""

    name: str
    patch_files: tuple[Path, ...]
    policy: PatchPolicy


def collect_bulk_patches(directory: Path, extra: Iterable[Path] = ()) -> tuple[Path, ...]:
    """Gather every patch in directory, sorted by file name.

    Extra patches are copied into directory first so that they take their
    place in the lexicographic order alongside the others.

    Raises:
        FileNotFoundError: If directory does not exist
    """
    if not directory.is_dir():
        raise FileNotFoundError(f"Patch directory not found: {directory}")

    for patch_file in extra:
        shutil.copy2(patch_file, directory / patch_file.name)

    return tuple(sorted(directory.glob(PATCH_GLOB), key=lambda p: p.name))


def ordered_patch_set(
    name: str,
    directory: Path,
    file_names: Sequence[str],
    policy: PatchPolicy,
) -> PatchSet:
    """Build a patch set with an explicit order from files in directory."""
    return PatchSet(
        name=name,
        patch_files=tuple(directory / file_name for file_name in file_names),
        policy=policy,
    )


def apply_patch_set(commands: ExternalCommands, patch_set: PatchSet, target_tree: Path) -> None:
    """Apply every patch in order, stopping at the first failure.

    A failed patch leaves the tree partially patched for manual inspection.

    Raises:
        PatchApplicationError: If a patch does not apply, or the set is empty
    """
    if not patch_set.patch_files:
        raise PatchApplicationError(f"Patch set '{patch_set.name}' contains no patches")

    flags = patch_set.policy.flags()
    for patch_file in patch_set.patch_files:
        logger.debug("Applying %s from set %s", patch_file.name, patch_set.name)
        commands.apply_patch(patch_file, target_tree, flags)
