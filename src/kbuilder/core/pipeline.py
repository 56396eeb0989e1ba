"""The kernel build pipeline.

Runs the procedure strictly top to bottom. Each step relies on the files the
previous steps left on disk, and all paths are derived from BuildConfig
rather than from a changing working directory. The first failing step aborts
the run; there is no rollback.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from kbuilder.core.archive import download_file, fetch_and_extract, file_name_from_url
from kbuilder.core.builder import build_kernel, install_kernel, refresh_kernel_config
from kbuilder.core.config import BuildConfig
from kbuilder.core.config_file import set_options
from kbuilder.core.context import KBuilderContext
from kbuilder.core.errors import KBuilderError, StepFailedError
from kbuilder.core.integrate import install_extra_file, integrate_driver
from kbuilder.core.patching import (
    PatchSet,
    apply_patch_set,
    collect_bulk_patches,
    ordered_patch_set,
)
from kbuilder.core.prerequisites import check_prerequisites, required_tools

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineStep:
    title: str
    action: Callable[[], None]


@dataclass(frozen=True)
class StepResult:
    title: str
    duration_seconds: float


class KernelBuildRun:
    """One run of the build procedure.

    Holds the little state that flows between steps (the resolved driver
    directory) and exposes each step as a method so it can be exercised on
    its own in tests.
    """

    def __init__(
        self,
        ctx: KBuilderContext,
        config: BuildConfig,
        emit: Callable[[str], None],
    ) -> None:
        self._ctx = ctx
        self._config = config
        self._emit = emit
        self.driver_source_dir: Path | None = None
        self.results: list[StepResult] = []

    @property
    def config(self) -> BuildConfig:
        return self._config

    def check_tools(self) -> None:
        check_prerequisites(self._ctx.commands, required_tools(self._config.install))
        self._emit("All required tools are present.")

    def prepare_kernel_source(self) -> None:
        config = self._config
        commands = self._ctx.commands

        self._emit(f"Creating working directory: {config.work_dir}")
        config.work_dir.mkdir(parents=True, exist_ok=True)

        if config.skip_clone:
            if not config.kernel_root.is_dir():
                raise FileNotFoundError(
                    f"--skip-clone given but no kernel tree at {config.kernel_root}"
                )
            self._emit(f"Reusing existing kernel tree at {config.kernel_root}")
        else:
            self._emit(f"Cloning Linux kernel {config.kernel_version} (depth=1)...")
            commands.clone(config.kernel_repo, config.kernel_version, config.kernel_root)

        self._emit(f"Downloading base kernel configuration from {config.config_url}...")
        commands.download(config.config_url, config.kernel_config_path)

        self._emit(f"Configuring kernel non-interactively (make {config.config_target})...")
        refresh_kernel_config(commands, config.kernel_root, config.config_target)

        names = ", ".join(option.name for option in config.crypto_options)
        self._emit(f"Enabling {names} in .config...")
        set_options(config.kernel_config_path, config.crypto_options)

    def extract_driver(self) -> None:
        config = self._config
        self._emit(f"Downloading driver archive from {config.driver_url}...")
        self.driver_source_dir = fetch_and_extract(
            self._ctx.commands, config.driver_url, config.work_dir, config.driver_legacy_dirs
        )
        self._emit(f"Driver extracted to: {self.driver_source_dir}")

    def integrate_driver_sources(self) -> None:
        config = self._config
        if self.driver_source_dir is None:
            raise KBuilderError("Driver sources have not been extracted")

        self._emit(f"Copying driver files into {config.vendor_subpath}...")
        integrate_driver(
            self.driver_source_dir,
            config.kernel_root,
            config.vendor_subpath,
            config.registrations,
        )
        for registration in config.registrations:
            self._emit(f"Registered driver in {registration.relative_file}")

    def configure_driver_options(self) -> None:
        config = self._config
        for option in config.driver_options:
            self._emit(f"  {option}")
        set_options(config.kernel_config_path, config.driver_options)

    def apply_patches(self) -> None:
        config = self._config
        commands = self._ctx.commands

        self._emit(f"Downloading kernel patches archive from {config.patches_url}...")
        patches_dir = fetch_and_extract(commands, config.patches_url, config.work_dir)

        extras = [
            download_file(commands, url, config.work_dir) for url in config.extra_bulk_patch_urls
        ]
        bulk_files = collect_bulk_patches(patches_dir / config.patches_subdir, extras)
        bulk_set = PatchSet(name="bulk", patch_files=bulk_files, policy=config.bulk_patch_policy)
        self._emit(f"Applying {len(bulk_files)} bulk kernel patches...")
        apply_patch_set(commands, bulk_set, config.kernel_root)

        config.header_patch_dir.mkdir(parents=True, exist_ok=True)
        for url in config.header_patch_urls:
            download_file(commands, url, config.header_patch_dir)
        header_set = ordered_patch_set(
            "headers",
            config.header_patch_dir,
            [file_name_from_url(url) for url in config.header_patch_urls],
            config.header_patch_policy,
        )
        names = ", ".join(p.name for p in header_set.patch_files)
        self._emit(f"Applying header patches: {names}...")
        apply_patch_set(commands, header_set, config.kernel_root)

        for url in config.extra_driver_file_urls:
            downloaded = download_file(commands, url, config.work_dir)
            install_extra_file(downloaded, config.kernel_root, config.vendor_subpath)
            self._emit(f"Copied {downloaded.name} to {config.vendor_subpath}")

    def build(self) -> None:
        self._emit("Building kernel modules and kernel (this may take a long time)...")
        build_kernel(self._ctx.commands, self._config.kernel_root, self._config.jobs)

    def install(self) -> None:
        self._emit("Installing modules and kernel, then updating GRUB (requires sudo)...")
        install_kernel(self._ctx.commands, self._config.kernel_root)

    def steps(self) -> list[PipelineStep]:
        steps = [
            PipelineStep("Checking for necessary tools", self.check_tools),
            PipelineStep("Preparing the kernel source", self.prepare_kernel_source),
            PipelineStep("Extracting the driver", self.extract_driver),
            PipelineStep(
                "Integrating the driver into the kernel source", self.integrate_driver_sources
            ),
            PipelineStep(
                "Configuring the kernel with driver options", self.configure_driver_options
            ),
            PipelineStep("Applying kernel patches", self.apply_patches),
            PipelineStep("Building the kernel and driver", self.build),
        ]
        if self._config.install:
            steps.append(
                PipelineStep("Installing the kernel and updating the bootloader", self.install)
            )
        return steps

    def run(self) -> list[StepResult]:
        """Run every step in order.

        Completed steps are also kept on self.results, so a caller can report
        progress after a failure.

        Returns:
            Timing for each completed step

        Raises:
            StepFailedError: Wrapping the first KBuilderError, OSError or ValueError raised
        """
        self.results = []
        for number, step in enumerate(self.steps()):
            self._emit(f"--- Step {number}: {step.title} ---")
            logger.debug("Starting step %d: %s", number, step.title)
            started = time.monotonic()
            try:
                step.action()
            except (KBuilderError, OSError, ValueError) as e:
                logger.debug("Step %d failed: %s", number, e)
                raise StepFailedError(step.title, e) from e
            self.results.append(StepResult(step.title, time.monotonic() - started))
        return list(self.results)


def run_pipeline(
    ctx: KBuilderContext,
    config: BuildConfig,
    emit: Callable[[str], None],
) -> list[StepResult]:
    """Run the full kernel build procedure."""
    return KernelBuildRun(ctx, config, emit).run()
