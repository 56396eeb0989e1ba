"""Tests for archive download, extraction and directory resolution."""

from pathlib import Path

import pytest
from tests.fakes.commands import FakeCommands

from kbuilder.core.archive import (
    derived_dir_name,
    download_file,
    extraction_candidates,
    fetch_and_extract,
    file_name_from_url,
    resolve_extracted_dir,
)
from kbuilder.core.errors import FetchError, ResolutionError

DRIVER_URL = "https://example.com/raw/main/morsemicro_driver_rel_1_12_4_2024_Jun_11.zip"
LEGACY = "morsemicro_driver_rel_1_11_3_2024_Mar_28"
DERIVED = "morsemicro_driver_rel_1_12_4_2024_Jun_11"


def test_file_name_from_url() -> None:
    assert file_name_from_url(DRIVER_URL) == f"{DERIVED}.zip"
    assert file_name_from_url("https://example.com/a/debug.h.patch?raw=1") == "debug.h.patch"
    assert file_name_from_url("https://example.com/a/my%20file.zip") == "my file.zip"


def test_file_name_from_url_without_path_raises() -> None:
    with pytest.raises(ValueError, match="Cannot derive a file name"):
        file_name_from_url("https://example.com/")


def test_derived_dir_name() -> None:
    assert derived_dir_name(f"{DERIVED}.zip") == DERIVED
    assert derived_dir_name("no_extension") == "no_extension"


def test_extraction_candidates_prefer_legacy_and_deduplicate() -> None:
    assert extraction_candidates(f"{DERIVED}.zip", [LEGACY, DERIVED]) == [LEGACY, DERIVED]


def test_resolve_prefers_legacy_over_derived(tmp_path: Path) -> None:
    (tmp_path / LEGACY).mkdir()
    (tmp_path / DERIVED).mkdir()

    assert resolve_extracted_dir(tmp_path, f"{DERIVED}.zip", [LEGACY]) == tmp_path / LEGACY


def test_resolve_falls_back_to_derived(tmp_path: Path) -> None:
    (tmp_path / DERIVED).mkdir()

    assert resolve_extracted_dir(tmp_path, f"{DERIVED}.zip", [LEGACY]) == tmp_path / DERIVED


def test_resolve_ignores_files_named_like_candidates(tmp_path: Path) -> None:
    (tmp_path / LEGACY).write_text("not a directory", encoding="utf-8")
    (tmp_path / DERIVED).mkdir()

    assert resolve_extracted_dir(tmp_path, f"{DERIVED}.zip", [LEGACY]) == tmp_path / DERIVED


def test_resolve_fails_when_no_candidate_exists(tmp_path: Path) -> None:
    (tmp_path / "something_else").mkdir()

    with pytest.raises(ResolutionError) as exc_info:
        resolve_extracted_dir(tmp_path, f"{DERIVED}.zip", [LEGACY])

    error = exc_info.value
    assert error.candidates == [LEGACY, DERIVED]
    assert error.present == ["something_else"]
    assert LEGACY in str(error)
    assert DERIVED in str(error)
    assert "something_else" in str(error)


def test_download_file_uses_url_file_name(tmp_path: Path) -> None:
    url = "https://example.com/raw/debug.h.patch"
    fake = FakeCommands(downloads={url: "diff"})

    result = download_file(fake, url, tmp_path / "patches")

    assert result == tmp_path / "patches" / "debug.h.patch"
    assert result.read_text(encoding="utf-8") == "diff"


def test_fetch_and_extract_selects_legacy_directory(tmp_path: Path) -> None:
    fake = FakeCommands(archives={f"{DERIVED}.zip": {f"{LEGACY}/Kconfig": "config X\n"}})

    result = fetch_and_extract(fake, DRIVER_URL, tmp_path, [LEGACY])

    assert result == tmp_path / LEGACY
    assert (result / "Kconfig").exists()
    assert fake.calls == [f"download {DRIVER_URL}", f"extract {DERIVED}.zip"]


def test_fetch_and_extract_resolution_error(tmp_path: Path) -> None:
    fake = FakeCommands(archives={f"{DERIVED}.zip": {"unexpected/Kconfig": ""}})

    with pytest.raises(ResolutionError):
        fetch_and_extract(fake, DRIVER_URL, tmp_path, [LEGACY])


def test_fetch_and_extract_download_failure_skips_extraction(tmp_path: Path) -> None:
    fake = FakeCommands(failing_urls={DRIVER_URL})

    with pytest.raises(FetchError):
        fetch_and_extract(fake, DRIVER_URL, tmp_path, [LEGACY])

    assert fake.calls == [f"download {DRIVER_URL}"]
