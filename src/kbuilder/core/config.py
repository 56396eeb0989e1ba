"""Build configuration data structures and loading.

Provides the immutable BuildConfig consumed by the pipeline. Defaults
reproduce the Morse Micro HaLow driver procedure for kernel v6.6; a TOML file
can override any field by name, and CLI options override the file.
"""

import dataclasses
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, get_origin

from kbuilder.core.config_file import KconfigOption
from kbuilder.core.integrate import BuildRegistration
from kbuilder.core.line_edit import validate_option_name
from kbuilder.core.patching import PatchPolicy

_ASSET_BASE = "https://raw.githubusercontent.com/bsantunes/AHM26108D/refs/heads/main"
_ARCHIVE_BASE = "https://github.com/bsantunes/AHM26108D/raw/refs/heads/main"

DEFAULT_CRYPTO_OPTIONS: tuple[KconfigOption, ...] = (
    KconfigOption("CONFIG_CRYPTO_CCM", "y"),
    KconfigOption("CONFIG_CRYPTO_GCM", "y"),
)

DEFAULT_DRIVER_OPTIONS: tuple[KconfigOption, ...] = (
    KconfigOption("CONFIG_WLAN_VENDOR_MORSE", "m"),
    KconfigOption("CONFIG_MORSE_SDIO", "y"),
    KconfigOption("CONFIG_MORSE_USER_ACCESS", "y"),
    KconfigOption("CONFIG_MORSE_VENDOR_COMMAND", "y"),
    KconfigOption("CONFIG_CFG80211", "m"),
    KconfigOption("CONFIG_MAC80211", "m"),
)

DEFAULT_REGISTRATIONS: tuple[BuildRegistration, ...] = (
    BuildRegistration(
        relative_file="drivers/net/wireless/Kconfig",
        anchor_line='source "drivers/net/wireless/ti/Kconfig"',
        new_line='source "drivers/net/wireless/morse/Kconfig"',
    ),
    BuildRegistration(
        relative_file="drivers/net/wireless/Makefile",
        anchor_line="obj-$(CONFIG_WLAN_VENDOR_TI) += ti/",
        new_line="obj-$(CONFIG_WLAN_VENDOR_MORSE) += morse/",
    ),
)


@dataclass(frozen=True)
class BuildConfig:
    """Immutable configuration for one kernel build run.

    Created at the CLI entry point and threaded through every step.
    """

    work_dir: Path = Path("/opt/kernel_build")
    kernel_version: str = "v6.6"
    kernel_repo: str = "https://github.com/torvalds/linux.git"
    kernel_dir_name: str = "linux"
    config_url: str = f"{_ASSET_BASE}/config-6.8.0-60-generic"
    config_target: str = "olddefconfig"

    driver_url: str = f"{_ARCHIVE_BASE}/morsemicro_driver_rel_1_12_4_2024_Jun_11.zip"
    driver_legacy_dirs: tuple[str, ...] = ("morsemicro_driver_rel_1_11_3_2024_Mar_28",)
    vendor_subpath: str = "drivers/net/wireless/morse"
    registrations: tuple[BuildRegistration, ...] = DEFAULT_REGISTRATIONS

    crypto_options: tuple[KconfigOption, ...] = DEFAULT_CRYPTO_OPTIONS
    driver_options: tuple[KconfigOption, ...] = DEFAULT_DRIVER_OPTIONS

    patches_url: str = f"{_ARCHIVE_BASE}/morsemicro_kernel_patches_rel_1_12_4_2024_Jun_11.zip"
    patches_subdir: str = "6.6.x"
    extra_bulk_patch_urls: tuple[str, ...] = (f"{_ASSET_BASE}/0010-sdio_18v_quirk.patch",)
    bulk_patch_policy: PatchPolicy = field(
        default_factory=lambda: PatchPolicy(strip=1, fuzz=None, remove_empty_files=True)
    )
    header_patch_urls: tuple[str, ...] = (
        f"{_ASSET_BASE}/debug.h.patch",
        f"{_ASSET_BASE}/firmware.h.patch",
        f"{_ASSET_BASE}/morse.h.patch",
    )
    header_patch_policy: PatchPolicy = field(default_factory=lambda: PatchPolicy(strip=1))
    extra_driver_file_urls: tuple[str, ...] = (f"{_ASSET_BASE}/morse_types.h",)

    jobs: int | None = None
    install: bool = True
    skip_clone: bool = False

    @property
    def kernel_root(self) -> Path:
        return self.work_dir / self.kernel_dir_name

    @property
    def kernel_config_path(self) -> Path:
        return self.kernel_root / ".config"

    @property
    def header_patch_dir(self) -> Path:
        return self.work_dir / "patches"


_FIELD_TYPES: dict[str, Any] = {f.name: f.type for f in dataclasses.fields(BuildConfig)}


def _to_options(value: Any, key: str) -> tuple[KconfigOption, ...]:
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a table of OPTION = \"value\" pairs")
    return tuple(
        KconfigOption(validate_option_name(str(name)), str(option_value))
        for name, option_value in value.items()
    )


def _to_registrations(value: Any, key: str) -> tuple[BuildRegistration, ...]:
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be an array of tables")
    try:
        return tuple(
            BuildRegistration(
                relative_file=item["relative_file"],
                anchor_line=item["anchor_line"],
                new_line=item["new_line"],
            )
            for item in value
        )
    except (KeyError, TypeError) as e:
        raise ValueError(
            f"Each '{key}' entry needs relative_file, anchor_line and new_line"
        ) from e


def _to_policy(value: Any, key: str) -> PatchPolicy:
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a table")
    try:
        return PatchPolicy(**value)
    except TypeError as e:
        raise ValueError(f"Invalid '{key}': {e}") from e


def _to_work_dir(value: Any, key: str) -> Path:
    if not isinstance(value, (str, Path)):
        raise ValueError(f"'{key}' must be a path string")
    # patch -d changes directory before opening -i; derived paths must be absolute
    return Path(value).expanduser().resolve()


def _to_jobs(value: Any, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{key}' must be a positive integer, got {value!r}")
    return value


def _check_plain(key: str, value: Any) -> Any:
    expected = _FIELD_TYPES[key]
    if get_origin(expected) is tuple:
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"'{key}' must be an array, got {value!r}")
        return tuple(value)
    if expected in (bool, str) and not isinstance(value, expected):
        raise ValueError(
            f"'{key}' must be a {expected.__name__}, got {type(value).__name__} {value!r}"
        )
    return value


def _convert(key: str, value: Any) -> Any:
    if key == "work_dir":
        return _to_work_dir(value, key)
    if key == "jobs":
        return _to_jobs(value, key)
    if key in ("crypto_options", "driver_options"):
        return _to_options(value, key)
    if key == "registrations":
        return _to_registrations(value, key)
    if key in ("bulk_patch_policy", "header_patch_policy"):
        return _to_policy(value, key)
    return _check_plain(key, value)


def apply_overrides(config: BuildConfig, overrides: dict[str, Any], source: str) -> BuildConfig:
    """Return config with overrides applied.

    Raises:
        ValueError: If an override names an unknown field or has the wrong type
    """
    unknown = sorted(set(overrides) - set(_FIELD_TYPES))
    if unknown:
        raise ValueError(f"Unknown configuration key(s) in {source}: {', '.join(unknown)}")

    converted = {key: _convert(key, value) for key, value in overrides.items()}
    return dataclasses.replace(config, **converted)


def load_build_config(path: Path | None) -> BuildConfig:
    """Load a BuildConfig, starting from defaults.

    Args:
        path: TOML file with overrides, or None for pure defaults

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is malformed or has unknown keys
    """
    if path is None:
        return BuildConfig()

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Malformed config file {path}: {e}") from e

    return apply_overrides(BuildConfig(), data, str(path))
