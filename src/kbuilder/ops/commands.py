"""External command interface for the kernel build procedure.

This module defines the abstract interface for every external tool kbuilder
drives, following the ops pattern with ABC-based dependency injection for
testability. The real implementation shells out; the fake in
tests/fakes/commands.py records calls and simulates their file effects.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class ExternalCommands(ABC):
    """Abstract interface for external tools (git, curl, unzip, patch, make).

    Every method either completes or raises; success is defined solely by the
    tool's exit status.
    """

    @abstractmethod
    def which(self, tool: str) -> str | None:
        """Resolve tool on PATH.

        Returns:
            Absolute path to the executable, or None if not found
        """
        ...

    @abstractmethod
    def clone(self, repo_url: str, branch: str, dest: Path) -> None:
        """Shallow-clone a single branch or tag of repo_url into dest.

        Raises:
            FetchError: If the clone fails
        """
        ...

    @abstractmethod
    def download(self, url: str, dest: Path) -> None:
        """Download url to the file dest, following redirects.

        Raises:
            FetchError: If the download fails
        """
        ...

    @abstractmethod
    def extract_zip(self, archive: Path, dest_dir: Path) -> None:
        """Extract archive into dest_dir, overwriting existing files.

        Raises:
            FetchError: If extraction fails
        """
        ...

    @abstractmethod
    def apply_patch(self, patch_file: Path, target_tree: Path, flags: list[str]) -> None:
        """Apply a single patch file to target_tree.

        Args:
            patch_file: Unified diff to apply
            target_tree: Directory the patch paths are relative to
            flags: Extra patch(1) flags such as ["-p1", "-F0", "-E"]

        Raises:
            PatchApplicationError: If the patch does not apply cleanly
        """
        ...

    @abstractmethod
    def make(
        self,
        kernel_root: Path,
        targets: list[str],
        *,
        jobs: int | None = None,
        privileged: bool = False,
    ) -> None:
        """Run make in kernel_root.

        Args:
            kernel_root: Kernel source tree
            targets: Make targets; empty means the default target
            jobs: Parallel job count passed as -j, or None for make's default
            privileged: Run through sudo (install steps)

        Raises:
            BuildError: If make exits non-zero
        """
        ...

    @abstractmethod
    def update_bootloader(self) -> None:
        """Regenerate the bootloader configuration (update-grub via sudo).

        Raises:
            BuildError: If the update fails
        """
        ...
