"""Error taxonomy for kbuilder.

Every failure is fatal: nothing in this package recovers from these errors
locally. They bubble up to the CLI error boundary, which names the failed step
and reports the working directory so partial state can be inspected by hand.

Filesystem failures are not wrapped; they surface as the built-in ``OSError``.
"""

from pathlib import Path


class KBuilderError(RuntimeError):
    """Base class for all kbuilder errors."""


class MissingToolError(KBuilderError):
    """A required external tool is not available on PATH."""

    def __init__(self, tool: str, package: str | None = None) -> None:
        self.tool = tool
        self.package = package or tool
        super().__init__(
            f"{tool} is not installed. "
            f"Please install it (e.g., sudo apt install {self.package})."
        )


class ResolutionError(KBuilderError):
    """The directory produced by extracting an archive could not be determined."""

    def __init__(self, archive_name: str, candidates: list[str], present: list[str]) -> None:
        self.archive_name = archive_name
        self.candidates = candidates
        self.present = present
        present_text = ", ".join(present) if present else "(none)"
        super().__init__(
            f"Could not find expected directory after extracting {archive_name}\n"
            f"Tried: {', '.join(candidates)}\n"
            f"Directories present: {present_text}"
        )


class FetchError(KBuilderError):
    """Cloning, downloading or extracting a resource failed."""


class PatchApplicationError(KBuilderError):
    """A patch did not apply cleanly."""

    def __init__(self, message: str, patch_file: Path | None = None) -> None:
        self.patch_file = patch_file
        super().__init__(message)


class BuildError(KBuilderError):
    """Compilation, installation or bootloader update failed."""


class StepFailedError(KBuilderError):
    """A pipeline step failed; wraps the underlying cause."""

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"Step '{step}' failed: {cause}")
