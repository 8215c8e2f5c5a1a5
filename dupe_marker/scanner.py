"""
Directory traversal feeding per-directory listings to the duplicate detector
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .core import DupeSet, identify_dupes
from .errors import DigestReadError, DupeMarkerError, TraversalError
from .marker import DEFAULT_TAG, is_marked

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryListing:
    path: Path
    sizes: Dict[str, int]
    error: Optional[TraversalError] = None


@dataclass
class DirectoryResult:
    path: Path
    dupe_sets: List[DupeSet] = field(default_factory=list)
    error: Optional[DupeMarkerError] = None


@dataclass
class ScanSummary:
    directories: int = 0
    dupe_sets: List[DupeSet] = field(default_factory=list)
    errors: List[DupeMarkerError] = field(default_factory=list)


def _read_directory(directory: Path, tag: str) -> Tuple[Dict[str, int], List[Path]]:
    """Return (sizes of unmarked regular files, subdirectories), both sorted by name"""
    sizes = {}
    subdirs = []
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda de: de.name)
            for de in entries:
                if de.is_dir(follow_symlinks=False):
                    subdirs.append(Path(de.path))
                elif de.is_file(follow_symlinks=False) and not is_marked(de.name, tag):
                    sizes[de.name] = de.stat(follow_symlinks=False).st_size
    except OSError as e:
        raise TraversalError(directory, e) from e
    return sizes, subdirs


def list_directory(directory: Path, tag: str = DEFAULT_TAG) -> Dict[str, int]:
    """
    List the regular files of one directory with their sizes

    Subdirectories, symlinks and files already bearing the marker are left
    out.

    Raises:
        TraversalError: if the directory cannot be listed
    """
    return _read_directory(Path(directory), tag)[0]


def iter_listings(
        root: Path,
        tag: str = DEFAULT_TAG,
        recursive: bool = True
) -> Iterator[DirectoryListing]:
    """
    Walk the tree top-down, yielding one listing per directory

    Directories that cannot be listed are logged and yielded with their
    error and no files; their subtree is skipped.
    """
    pending = [Path(root)]
    while pending:
        directory = pending.pop()
        try:
            sizes, subdirs = _read_directory(directory, tag)
        except TraversalError as e:
            logger.error("%s", e)
            yield DirectoryListing(directory, {}, error=e)
            continue

        yield DirectoryListing(directory, sizes)

        if recursive:
            pending.extend(reversed(subdirs))


def resolve_listing(listing: DirectoryListing) -> DirectoryResult:
    """Run duplicate detection for one directory, capturing read failures"""
    if listing.error is not None:
        return DirectoryResult(listing.path, error=listing.error)
    try:
        dupe_sets = identify_dupes(listing.path, listing.sizes)
    except DigestReadError as e:
        logger.error("skipping %s: %s", listing.path, e)
        return DirectoryResult(listing.path, error=e)
    return DirectoryResult(listing.path, dupe_sets)


def scan_tree(
        root: Path,
        tag: str = DEFAULT_TAG,
        recursive: bool = True,
        jobs: int = 1
) -> Iterator[DirectoryResult]:
    """
    Detect duplicates in every directory under root

    Args:
        root: Directory to start from
        tag: Marker suffix; files ending with it are not scanned
        recursive: Whether to descend into subdirectories
        jobs: Number of directories resolved concurrently

    Yields:
        One DirectoryResult per directory, in walk order
    """
    listings = iter_listings(root, tag, recursive)
    if jobs <= 1:
        for listing in listings:
            yield resolve_listing(listing)
        return

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        yield from executor.map(resolve_listing, listings)


def collect(results: Iterable[DirectoryResult]) -> ScanSummary:
    """Gather per-directory results into one summary"""
    summary = ScanSummary()
    for result in results:
        summary.directories += 1
        if result.error is not None:
            summary.errors.append(result.error)
        summary.dupe_sets.extend(result.dupe_sets)
    return summary
