"""
step1_download_datasets.py
==========================

Download the two public shapefile archives used by the walkthrough and
unpack each into its own sub-directory of the data directory:

- GADM 4.1 administrative boundaries for India -> ``data/boundaries/``
- DIVA-GIS road network for India              -> ``data/roads/``

The original ``.zip`` archives are deleted once they have been unpacked.
There is no retry policy: an HTTP error, a timeout or a corrupt archive
aborts the run.

Typical usage
-------------
    python step1_download_datasets.py --data-dir data

Requirements
------------
- requests
"""

from __future__ import annotations

import argparse
import logging
import shutil
import zipfile
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import requests

from step0_config import (
    DATA_DIR,
    DATASETS,
    DOWNLOAD_CHUNK_SIZE,
    DOWNLOAD_TIMEOUT,
    LOG_LEVELS,
    REQUIRED_COMPONENTS,
    REQUIRED_SHAPEFILES,
    SHAPEFILE_EXTENSIONS,
    setup_logging,
)


# ---------------------------------------------------------------------
# Download & unpack
# ---------------------------------------------------------------------
def download_archive(url: str, dest_path: Path, timeout: int = DOWNLOAD_TIMEOUT) -> Path:
    """
    Stream a remote archive to disk.

    Parameters
    ----------
    url : str
        HTTP(S) location of the archive.
    dest_path : Path
        File the archive is written to. Parent directories are created.
    timeout : int, optional
        Seconds before the request is abandoned.

    Returns
    -------
    Path
        ``dest_path``.

    Raises
    ------
    requests.HTTPError
        If the server answers with an error status.
    """
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    logging.info("Downloading '%s' -> '%s'.", url, dest_path)

    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        n_bytes = 0
        with open(dest_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
                    n_bytes += len(chunk)

    logging.info("Downloaded %.1f MB.", n_bytes / 1e6)
    return dest_path


def unpack_archive(archive_path: Path, extract_dir: Path, remove_archive: bool = True) -> Path:
    """
    Extract every member of a zip archive into ``extract_dir``.

    Members are first extracted into a hidden sibling directory, which
    replaces ``extract_dir`` only once every member has been written. A
    failed extraction removes the partial files and leaves the archive in
    place, so ``extract_dir`` never holds an incomplete dataset.

    Parameters
    ----------
    archive_path : Path
        The ``.zip`` file to unpack.
    extract_dir : Path
        Target directory, created if needed.
    remove_archive : bool, optional
        Delete the archive after a successful extraction (default True).

    Returns
    -------
    Path
        ``extract_dir``.

    Raises
    ------
    zipfile.BadZipFile
        If the archive is not a valid zip file or a member fails its CRC check.
    """
    extract_dir.parent.mkdir(parents=True, exist_ok=True)
    staging_dir = extract_dir.with_name(f".{extract_dir.name}.partial")
    if staging_dir.exists():
        shutil.rmtree(staging_dir)

    try:
        with zipfile.ZipFile(archive_path) as zf:
            members = zf.namelist()
            zf.extractall(staging_dir)
    except Exception:
        shutil.rmtree(staging_dir, ignore_errors=True)
        logging.error("Failed to unpack '%s'; partial files removed.", archive_path)
        raise

    if extract_dir.exists():
        shutil.rmtree(extract_dir)
    staging_dir.rename(extract_dir)
    logging.info("Unpacked %d file(s) into '%s'.", len(members), extract_dir)

    if remove_archive:
        archive_path.unlink()
        logging.info("Removed archive '%s'.", archive_path)

    return extract_dir


def list_shapefile_components(directory: Path) -> Dict[str, List[str]]:
    """
    Group the shapefile components found in ``directory`` by file stem.

    Returns
    -------
    dict
        ``{stem: [".cpg", ".dbf", ".prj", ".shp", ".shx"]}`` with only the
        extensions that are actually present, sorted.
    """
    components: Dict[str, List[str]] = defaultdict(list)
    for path in sorted(directory.rglob("*")):
        suffix = path.suffix.lower()
        if path.is_file() and suffix in SHAPEFILE_EXTENSIONS:
            components[path.stem].append(suffix)
    return {stem: sorted(exts) for stem, exts in components.items()}


def is_unpacked(extract_dir: Path, shapefile: Optional[str] = None) -> bool:
    """
    True when ``extract_dir`` holds a usable shapefile.

    With ``shapefile`` given, that file must be present together with every
    extension in ``REQUIRED_COMPONENTS``. Without it, any one shapefile with
    all required components is enough.
    """
    if not extract_dir.is_dir():
        return False

    components = list_shapefile_components(extract_dir)
    required = set(REQUIRED_COMPONENTS)
    if shapefile is not None:
        return required <= set(components.get(Path(shapefile).stem, []))
    return any(required <= set(exts) for exts in components.values())


def acquire_datasets(
    datasets: Mapping[str, str] = DATASETS,
    data_dir: Path = DATA_DIR,
    overwrite: bool = False,
    required: Mapping[str, str] = REQUIRED_SHAPEFILES,
) -> Dict[str, Path]:
    """
    Download and unpack every archive in ``datasets``.

    Parameters
    ----------
    datasets : mapping of str to str
        Sub-directory name -> archive URL.
    data_dir : Path
        Root data directory; created if missing.
    overwrite : bool, optional
        Re-download even when the sub-directory already holds shapefiles.
    required : mapping of str to str, optional
        Sub-directory name -> shapefile that must be complete for the
        existing directory to be reused.

    Returns
    -------
    dict
        Sub-directory name -> directory holding the unpacked shapefile(s).
    """
    data_dir.mkdir(parents=True, exist_ok=True)
    extracted: Dict[str, Path] = {}

    for name, url in datasets.items():
        extract_dir = data_dir / name

        if not overwrite and is_unpacked(extract_dir, required.get(name)):
            logging.info("'%s' already unpacked in '%s'; skipping download.", name, extract_dir)
            extracted[name] = extract_dir
            continue

        archive_path = data_dir / f"{name}.zip"
        download_archive(url, archive_path)
        unpack_archive(archive_path, extract_dir)

        for stem, exts in list_shapefile_components(extract_dir).items():
            logging.info("  %s: %s", stem, ", ".join(exts))

        extracted[name] = extract_dir

    return extracted


# ---------------------------------------------------------------------
# CLI Interface
# ---------------------------------------------------------------------
def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download and unpack the India boundary and road shapefiles."
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DATA_DIR,
        help=f"Directory to unpack the archives into (default: '{DATA_DIR}').",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Download again even if the shapefiles are already present.",
    )
    parser.add_argument(
        "--log",
        type=str,
        default="INFO",
        choices=LOG_LEVELS,
        help="Logging level (default: INFO).",
    )
    return parser


def main() -> None:
    """Entry point for command-line execution."""
    args = build_arg_parser().parse_args()
    setup_logging(args.log)
    acquire_datasets(DATASETS, args.data_dir, overwrite=args.overwrite)


if __name__ == "__main__":
    main()
