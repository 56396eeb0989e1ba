"""Real external commands using subprocess.

All operations follow LBYL philosophy: check conditions before acting,
let exceptions bubble to the CLI error boundary.
"""

import shutil
from pathlib import Path

from kbuilder.core.errors import BuildError, FetchError, PatchApplicationError
from kbuilder.core.subprocess import run_subprocess_with_context
from kbuilder.ops.commands import ExternalCommands


class RealCommands(ExternalCommands):
    """External commands executed with subprocess.

    Short commands capture their output so it can be reported on failure.
    Clone and make stream to the terminal because they run for a long time.

    Example:
        commands = RealCommands()
        commands.clone("https://github.com/torvalds/linux.git", "v6.6", Path("/opt/kb/linux"))
        commands.make(Path("/opt/kb/linux"), [], jobs=8)
    """

    def which(self, tool: str) -> str | None:
        return shutil.which(tool)

    def clone(self, repo_url: str, branch: str, dest: Path) -> None:
        # LBYL: git refuses to clone into a non-empty directory
        if dest.exists() and any(dest.iterdir()):
            raise FetchError(f"Clone destination already exists and is not empty: {dest}")

        run_subprocess_with_context(
            ["git", "clone", "--depth=1", f"--branch={branch}", repo_url, str(dest)],
            operation_context=f"clone {repo_url} at {branch}",
            capture_output=False,
            error_type=FetchError,
        )

    def download(self, url: str, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        run_subprocess_with_context(
            ["curl", "--fail", "--location", "--silent", "--show-error", "-o", str(dest), url],
            operation_context=f"download {url}",
            error_type=FetchError,
        )

    def extract_zip(self, archive: Path, dest_dir: Path) -> None:
        if not archive.exists():
            raise FileNotFoundError(f"Archive not found: {archive}")

        run_subprocess_with_context(
            ["unzip", "-o", "-q", str(archive), "-d", str(dest_dir)],
            operation_context=f"extract {archive.name}",
            error_type=FetchError,
        )

    def apply_patch(self, patch_file: Path, target_tree: Path, flags: list[str]) -> None:
        if not patch_file.exists():
            raise FileNotFoundError(f"Patch file not found: {patch_file}")
        if not target_tree.is_dir():
            raise FileNotFoundError(f"Patch target tree not found: {target_tree}")

        try:
            run_subprocess_with_context(
                [
                    "patch",
                    "--batch",
                    *flags,
                    "-d",
                    str(target_tree.resolve()),
                    "-i",
                    str(patch_file.resolve()),
                ],
                operation_context=f"apply {patch_file.name}",
                error_type=PatchApplicationError,
            )
        except PatchApplicationError as e:
            raise PatchApplicationError(str(e), patch_file=patch_file) from e

    def make(
        self,
        kernel_root: Path,
        targets: list[str],
        *,
        jobs: int | None = None,
        privileged: bool = False,
    ) -> None:
        cmd = ["sudo", "make"] if privileged else ["make"]
        if jobs is not None:
            cmd.append(f"-j{jobs}")
        cmd.extend(targets)

        description = " ".join(targets) if targets else "default target"
        run_subprocess_with_context(
            cmd,
            operation_context=f"make {description}",
            cwd=kernel_root,
            capture_output=False,
            error_type=BuildError,
        )

    def update_bootloader(self) -> None:
        run_subprocess_with_context(
            ["sudo", "update-grub"],
            operation_context="update GRUB bootloader configuration",
            capture_output=False,
            error_type=BuildError,
        )
