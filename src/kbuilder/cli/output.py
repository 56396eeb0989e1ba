"""Output utilities for CLI commands with clear intent.

user_output writes progress and errors to stderr so that stdout stays free
for anything a caller might want to capture. format_run_summary renders the
closing summary box.
"""

import click
from rich.panel import Panel
from rich.text import Text

from kbuilder.core.pipeline import StepResult


def user_output(message: str = "") -> None:
    """Print a message for the operator (stderr)."""
    click.echo(message, err=True)


def error_output(message: str) -> None:
    """Print a message with the red "Error: " prefix."""
    user_output(click.style("Error: ", fg="red") + message)


def format_duration(seconds: float) -> str:
    """Format seconds as "45s", "1m 23s" or "2h 5m"."""
    total = int(seconds)
    if total < 60:
        return f"{total}s"
    minutes, secs = divmod(total, 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


def format_run_summary(
    results: list[StepResult],
    failed_step: str | None,
    work_dir: str,
    installed: bool,
) -> Panel:
    """Format the final summary box with per-step timing and next steps.

    Args:
        results: Completed steps, in order
        failed_step: Title of the step that failed, or None on success
        work_dir: Working directory holding the kernel tree and downloads
        installed: Whether the install steps ran

    Returns:
        Rich Panel with formatted summary
    """
    success = failed_step is None
    lines: list[Text] = []

    if success:
        lines.append(Text("✅ Status: Success", style="green"))
    else:
        lines.append(Text(f"❌ Status: Failed at '{failed_step}'", style="red"))

    total = sum(result.duration_seconds for result in results)
    lines.append(Text(f"⏱  Duration: {format_duration(total)}"))
    lines.append(Text(""))

    for result in results:
        duration = format_duration(result.duration_seconds)
        lines.append(Text(f"  ✓ {result.title} ({duration})", style="dim"))

    lines.append(Text(""))
    lines.append(Text(f"Kernel source and driver files: {work_dir}"))

    if success and installed:
        lines.append(Text("Reboot to boot into the new kernel: sudo reboot", style="bold"))
    elif not success:
        lines.append(Text("Partial state was left in place for manual inspection.", style="yellow"))

    title = "Kernel Build Complete" if success else "Kernel Build Failed"
    return Panel(
        Text("\n").join(lines),
        title=title,
        border_style="green" if success else "red",
        padding=(1, 2),
    )
