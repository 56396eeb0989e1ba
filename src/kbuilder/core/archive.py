"""Download and extraction of remote resources.

Vendor archives do not always extract to a directory named after the archive:
the Morse Micro driver zip for release 1.12.4 unpacks into a directory named
for release 1.11.3. The extracted directory is therefore resolved from an
explicit, prioritized list of candidates.
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import unquote, urlparse

from kbuilder.core.errors import ResolutionError
from kbuilder.ops.commands import ExternalCommands

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


def file_name_from_url(url: str) -> str:
    """Return the last path component of url, e.g. "debug.h.patch".

    Raises:
        ValueError: If the URL path has no file name
    """
    name = unquote(urlparse(url).path).rstrip("/").rsplit("/", 1)[-1]
    if not name:
        raise ValueError(f"Cannot derive a file name from URL: {url}")
    return name


def derived_dir_name(archive_name: str) -> str:
    """Strip the archive extension: "driver_rel_1.zip" -> "driver_rel_1"."""
    if archive_name.endswith(ARCHIVE_SUFFIX):
        return archive_name[: -len(ARCHIVE_SUFFIX)]
    return archive_name


def extraction_candidates(archive_name: str, legacy_dir_names: Sequence[str]) -> list[str]:
    """Candidate directory names in priority order, without duplicates."""
    candidates: list[str] = []
    for name in [*legacy_dir_names, derived_dir_name(archive_name)]:
        if name not in candidates:
            candidates.append(name)
    return candidates


def resolve_extracted_dir(
    dest_dir: Path,
    archive_name: str,
    legacy_dir_names: Sequence[str] = (),
) -> Path:
    """Find the directory produced by extracting archive_name into dest_dir.

    Known legacy names are preferred over the name derived from the archive
    file name; the first candidate that exists as a directory wins.

    Raises:
        ResolutionError: If no candidate directory exists
    """
    candidates = extraction_candidates(archive_name, legacy_dir_names)
    for name in candidates:
        candidate = dest_dir / name
        if candidate.is_dir():
            logger.debug("Resolved %s to %s", archive_name, candidate)
            return candidate

    present = sorted(p.name for p in dest_dir.iterdir() if p.is_dir()) if dest_dir.is_dir() else []
    raise ResolutionError(archive_name, candidates, present)


def download_file(commands: ExternalCommands, url: str, dest_dir: Path) -> Path:
    """Download url into dest_dir under its own file name.

    Returns:
        Path of the downloaded file
    """
    dest = dest_dir / file_name_from_url(url)
    commands.download(url, dest)
    return dest


def fetch_and_extract(
    commands: ExternalCommands,
    url: str,
    dest_dir: Path,
    legacy_dir_names: Sequence[str] = (),
) -> Path:
    """Download a zip archive into dest_dir, extract it and resolve its directory.

    Args:
        commands: External command interface
        url: Archive URL; its file name determines the derived directory name
        dest_dir: Directory receiving both the archive and its contents
        legacy_dir_names: Directory names to prefer over the derived name

    Returns:
        Path of the extracted directory

    Raises:
        FetchError: If download or extraction fails
        ResolutionError: If the extracted directory cannot be determined
    """
    archive = download_file(commands, url, dest_dir)
    commands.extract_zip(archive, dest_dir)
    return resolve_extracted_dir(dest_dir, archive.name, legacy_dir_names)
