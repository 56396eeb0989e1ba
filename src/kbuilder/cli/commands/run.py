"""The run command: the full kernel build procedure."""

from pathlib import Path
from typing import Any

import click
from rich.console import Console

from kbuilder.cli.ensure import Ensure
from kbuilder.cli.output import error_output, format_run_summary, user_output
from kbuilder.core.config import BuildConfig, apply_overrides, load_build_config
from kbuilder.core.context import KBuilderContext
from kbuilder.core.errors import StepFailedError
from kbuilder.core.pipeline import KernelBuildRun


def resolve_config(config_path: Path | None, cli_overrides: dict[str, Any]) -> BuildConfig:
    """Combine defaults, the optional TOML file and CLI options (highest precedence).

    Options left unset on the command line (None or False flags) do not
    override the file.
    """
    try:
        config = load_build_config(config_path)
        overrides = {
            key: value
            for key, value in cli_overrides.items()
            if value is not None and value is not False
        }
        return apply_overrides(config, overrides, "command line")
    except (FileNotFoundError, ValueError) as e:
        error_output(str(e))
        raise SystemExit(1) from None


def _closing_notice(work_dir: Path) -> None:
    user_output("--- Script execution finished or encountered an error. ---")
    user_output(f"You can find the kernel source and driver files in: {work_dir}")


@click.command("run")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="TOML file overriding the default build configuration.",
)
@click.option(
    "--work-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory for the kernel tree and downloads (default: /opt/kernel_build).",
)
@click.option(
    "--kernel-version", default=None, help="Kernel tag or branch to clone (default: v6.6)."
)
@click.option("--kernel-repo", default=None, help="Kernel git repository URL.")
@click.option("--config-url", default=None, help="URL of the base kernel .config.")
@click.option("--driver-url", default=None, help="URL of the driver source zip.")
@click.option("--patches-url", default=None, help="URL of the kernel patches zip.")
@click.option(
    "-j",
    "--jobs",
    type=int,
    default=None,
    help="Parallel make jobs (default: number of CPUs).",
)
@click.option("--skip-clone", is_flag=True, help="Reuse an existing kernel tree in the work dir.")
@click.option(
    "--no-install",
    is_flag=True,
    help="Stop after compiling; skip module/kernel install and the bootloader update.",
)
@click.pass_obj
def run_cmd(
    ctx: KBuilderContext,
    config_path: Path | None,
    work_dir: Path | None,
    kernel_version: str | None,
    kernel_repo: str | None,
    config_url: str | None,
    driver_url: str | None,
    patches_url: str | None,
    jobs: int | None,
    skip_clone: bool,
    no_install: bool,
) -> None:
    """Clone, patch, configure, build and install a kernel with the driver.

    Steps run strictly in order and the first failure aborts the run. Nothing
    is rolled back: the working directory is reported so partial state can be
    inspected. Installing requires sudo.
    """
    Ensure.positive(jobs, "--jobs")

    overrides: dict[str, Any] = {
        "work_dir": work_dir,
        "kernel_version": kernel_version,
        "kernel_repo": kernel_repo,
        "config_url": config_url,
        "driver_url": driver_url,
        "patches_url": patches_url,
        "jobs": jobs,
        "skip_clone": skip_clone,
    }
    config = resolve_config(config_path, overrides)
    if no_install:
        config = apply_overrides(config, {"install": False}, "command line")

    console = Console(stderr=True)
    build_run = KernelBuildRun(ctx, config, user_output)
    try:
        build_run.run()
    except StepFailedError as e:
        error_output(str(e))
        console.print(
            format_run_summary(build_run.results, e.step, str(config.work_dir), config.install)
        )
        _closing_notice(config.work_dir)
        raise SystemExit(1) from None
    except KeyboardInterrupt:
        user_output("\n✗ Interrupted by user")
        _closing_notice(config.work_dir)
        raise SystemExit(130) from None

    console.print(format_run_summary(build_run.results, None, str(config.work_dir), config.install))
    _closing_notice(config.work_dir)
