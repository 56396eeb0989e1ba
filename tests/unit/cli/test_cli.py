"""Tests for the kbuilder command line."""

from pathlib import Path

from click.testing import CliRunner
from tests.fakes.commands import FakeCommands
from tests.test_utils.build_env import simulated_build_env

from kbuilder.cli.cli import cli
from kbuilder.core.context import KBuilderContext


def _invoke(commands: FakeCommands, args: list[str]):
    runner = CliRunner()
    return runner.invoke(cli, args, obj=KBuilderContext(commands=commands))


def test_help_lists_commands() -> None:
    result = _invoke(FakeCommands(), ["-h"])

    assert result.exit_code == 0
    for name in ["check", "insert-line", "run", "set-option"]:
        assert name in result.output


def test_check_all_present() -> None:
    result = _invoke(FakeCommands(), ["check"])

    assert result.exit_code == 0
    assert "✓ update-grub: /usr/bin/update-grub" in result.output
    assert "All required tools are present." in result.output


def test_check_missing_tool() -> None:
    result = _invoke(FakeCommands(missing_tools={"curl"}), ["check"])

    assert result.exit_code == 1
    assert "curl is not installed" in result.output
    assert "Aborting." in result.output


def test_check_no_install_ignores_update_grub() -> None:
    result = _invoke(FakeCommands(missing_tools={"update-grub"}), ["check", "--no-install"])

    assert result.exit_code == 0


def test_set_option_is_idempotent(tmp_path: Path) -> None:
    config = tmp_path / ".config"
    config.write_text("# CONFIG_CRYPTO_CCM is not set\nCONFIG_64BIT=y\n", encoding="utf-8")

    first = _invoke(FakeCommands(), ["set-option", str(config), "CONFIG_CRYPTO_CCM", "y"])
    second = _invoke(FakeCommands(), ["set-option", str(config), "CONFIG_CRYPTO_CCM", "y"])

    assert first.exit_code == 0
    assert "Set CONFIG_CRYPTO_CCM=y" in first.output
    assert second.exit_code == 0
    assert "already set" in second.output
    assert config.read_text(encoding="utf-8") == "CONFIG_64BIT=y\nCONFIG_CRYPTO_CCM=y\n"


def test_set_option_missing_file(tmp_path: Path) -> None:
    result = _invoke(FakeCommands(), ["set-option", str(tmp_path / ".config"), "CONFIG_X", "y"])

    assert result.exit_code == 1
    assert "Kernel config not found" in result.output


def test_set_option_invalid_name(tmp_path: Path) -> None:
    config = tmp_path / ".config"
    config.write_text("", encoding="utf-8")

    result = _invoke(FakeCommands(), ["set-option", str(config), "CONFIG X", "y"])

    assert result.exit_code == 1
    assert "Invalid option name" in result.output


def test_insert_line_literal_anchor(tmp_path: Path) -> None:
    makefile = tmp_path / "Makefile"
    makefile.write_text(
        "obj-$(CONFIG_WLAN_VENDOR_TI) += ti/\nobj-$(CONFIG_WLAN_VENDOR_ZYDAS) += zydas/\n",
        encoding="utf-8",
    )
    args = [
        "insert-line",
        str(makefile),
        "obj-$(CONFIG_WLAN_VENDOR_TI) += ti/",
        "obj-$(CONFIG_WLAN_VENDOR_MORSE) += morse/",
    ]

    first = _invoke(FakeCommands(), args)
    second = _invoke(FakeCommands(), args)

    assert first.exit_code == 0
    assert "Inserted into" in first.output
    assert "Already present" in second.output
    assert makefile.read_text(encoding="utf-8").splitlines() == [
        "obj-$(CONFIG_WLAN_VENDOR_TI) += ti/",
        "obj-$(CONFIG_WLAN_VENDOR_MORSE) += morse/",
        "obj-$(CONFIG_WLAN_VENDOR_ZYDAS) += zydas/",
    ]


def test_insert_line_invalid_regex(tmp_path: Path) -> None:
    target = tmp_path / "Kconfig"
    target.write_text("if WLAN\n", encoding="utf-8")

    result = _invoke(FakeCommands(), ["insert-line", "--regex", str(target), "([", "x"])

    assert result.exit_code == 1
    assert "Invalid --regex anchor" in result.output


def test_insert_line_rejects_empty_line(tmp_path: Path) -> None:
    target = tmp_path / "Kconfig"
    target.write_text("if WLAN\n", encoding="utf-8")

    result = _invoke(FakeCommands(), ["insert-line", str(target), "if WLAN", "  "])

    assert result.exit_code == 1
    assert "LINE must not be empty" in result.output


def test_run_success_prints_summary(tmp_path: Path) -> None:
    env = simulated_build_env(tmp_path)

    result = _invoke(
        env.commands, ["run", "--work-dir", str(env.config.work_dir), "--jobs", "2"]
    )

    assert result.exit_code == 0, result.output
    assert "--- Step 0: Checking for necessary tools ---" in result.output
    assert "Kernel Build Complete" in result.output
    assert f"You can find the kernel source and driver files in: {env.config.work_dir}" in (
        result.output
    )
    assert env.commands.make_calls[1][2] == 2


def test_run_no_install(tmp_path: Path) -> None:
    env = simulated_build_env(tmp_path)

    result = _invoke(env.commands, ["run", "--work-dir", str(env.config.work_dir), "--no-install"])

    assert result.exit_code == 0, result.output
    assert "update-grub" not in env.commands.calls
    assert "Step 7" not in result.output


def test_run_failure_reports_step(tmp_path: Path) -> None:
    env = simulated_build_env(tmp_path, failing_patches={"morse.h.patch"})

    result = _invoke(env.commands, ["run", "--work-dir", str(env.config.work_dir)])

    assert result.exit_code == 1
    assert "Step 'Applying kernel patches' failed" in result.output
    assert "Kernel Build Failed" in result.output
    assert "--- Script execution finished or encountered an error. ---" in result.output
    assert "make" not in env.commands.calls


def test_run_rejects_non_positive_jobs(tmp_path: Path) -> None:
    result = _invoke(FakeCommands(), ["run", "--work-dir", str(tmp_path), "-j", "0"])

    assert result.exit_code == 1
    assert "--jobs must be a positive integer" in result.output


def test_run_with_config_file(tmp_path: Path) -> None:
    env = simulated_build_env(tmp_path)
    config_file = tmp_path / "build.toml"
    config_file.write_text(
        f'work_dir = "{env.config.work_dir}"\ninstall = false\n', encoding="utf-8"
    )

    result = _invoke(env.commands, ["run", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "sudo make install" not in env.commands.calls


def test_run_rejects_unknown_config_key(tmp_path: Path) -> None:
    config_file = tmp_path / "build.toml"
    config_file.write_text("bogus = 1\n", encoding="utf-8")

    result = _invoke(FakeCommands(), ["run", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "Unknown configuration key(s)" in result.output
    assert "bogus" in result.output


def test_run_rejects_zero_jobs_in_config_file(tmp_path: Path) -> None:
    config_file = tmp_path / "build.toml"
    config_file.write_text("jobs = 0\n", encoding="utf-8")

    result = _invoke(FakeCommands(), ["run", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "'jobs' must be a positive integer" in result.output
