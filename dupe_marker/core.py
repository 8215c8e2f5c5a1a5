"""
Core functionality for identifying duplicate files within a directory
"""

import hashlib
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import DigestReadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB read size for digesting

Digest = bytes


@dataclass
class DupeSet:
    """A canonical file and the files found to have the same content"""

    canonical: Path
    size_bytes: int
    digest: Optional[Digest] = None
    dupes: List[Path] = field(default_factory=list)

    @property
    def hexdigest(self) -> str:
        return self.digest.hex() if self.digest is not None else ""


def calculate_file_digest(filepath: Path, chunk_size: int = CHUNK_SIZE) -> Digest:
    """
    Calculate the SHA-256 digest of a file's full content

    Args:
        filepath: Path to the file
        chunk_size: Size of chunks to read at once

    Returns:
        The 32-byte digest

    Raises:
        DigestReadError: if the file cannot be opened or read
    """
    digest = hashlib.sha256()
    try:
        with open(filepath, 'rb') as f:
            for chunk in iter(lambda: f.read(chunk_size), b''):
                digest.update(chunk)
    except OSError as e:
        raise DigestReadError(filepath, e) from e
    return digest.digest()


def group_by_size(sizes_by_file: Mapping[str, int]) -> Dict[int, List[str]]:
    """
    Partition filenames into groups sharing the same size

    Each group is sorted by ascending filename length; names of equal length
    keep their input order. Groups with a single member are dropped since a
    unique size cannot collide in content.

    Args:
        sizes_by_file: Mapping of filename to size in bytes

    Returns:
        Dictionary with sizes as keys (ascending) and filename lists as values
    """
    inverted = defaultdict(list)
    for name, size in sizes_by_file.items():
        inverted[size].append(name)

    return {
        size: sorted(inverted[size], key=len)
        for size in sorted(inverted)
        if len(inverted[size]) > 1
    }


def identify_dupes(
        directory: Path,
        sizes_by_file: Mapping[str, int],
        chunk_size: int = CHUNK_SIZE
) -> List[DupeSet]:
    """
    Find files with identical content among the files of one directory

    Files are first grouped by size; only members of groups with two or
    more files are digested. The first file seen for a digest becomes the
    canonical copy, later ones are recorded as its dupes.

    Args:
        directory: Directory holding the files
        sizes_by_file: Mapping of filename to size for that directory
        chunk_size: Size of chunks to read while digesting

    Returns:
        Duplicate sets, each with at least one dupe

    Raises:
        DigestReadError: if any candidate file cannot be read
    """
    directory = Path(directory)
    dupe_sets: Dict[Digest, DupeSet] = {}

    for size, names in group_by_size(sizes_by_file).items():
        for name in names:
            filepath = directory / name
            digest = calculate_file_digest(filepath, chunk_size)
            if digest not in dupe_sets:
                dupe_sets[digest] = DupeSet(canonical=filepath, size_bytes=size, digest=digest)
                continue
            dupe_sets[digest].dupes.append(filepath)

    found = [ds for ds in dupe_sets.values() if ds.dupes]
    logger.debug("%s: %d candidate digests, %d dupe sets", directory, len(dupe_sets), len(found))
    return found


def format_size(size_bytes: int) -> str:
    """
    Convert bytes to human-readable format

    Args:
        size_bytes: Size in bytes

    Returns:
        Human readable size string
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"


def analyze_dupes(dupe_sets: List[DupeSet]) -> Tuple[int, int, int]:
    """
    Analyze duplicate sets to get statistics

    Args:
        dupe_sets: Duplicate sets to analyze

    Returns:
        Tuple of (total_sets, total_dupe_files, total_reclaimable_space)
    """
    total_files = sum(len(ds.dupes) for ds in dupe_sets)
    total_space = sum(ds.size_bytes * len(ds.dupes) for ds in dupe_sets)
    return len(dupe_sets), total_files, total_space


def format_dupe_set(dupe_set: DupeSet, show_size: bool = False) -> str:
    """Describe one duplicate set and its dupes"""
    size_info = f" ({format_size(dupe_set.size_bytes)})" if show_size else ""
    lines = [
        f"Suspect file {dupe_set.canonical} (size {dupe_set.size_bytes}, "
        f"digest {dupe_set.hexdigest}){size_info} has {len(dupe_set.dupes)} dupes:"
    ]
    for i, filepath in enumerate(dupe_set.dupes):
        lines.append(f"  -- dupe {i}: {filepath}")
    return "\n".join(lines)


def get_dupes_report(dupe_sets: List[DupeSet], show_size: bool = False) -> str:
    """
    Generate a formatted report of duplicate sets

    Args:
        dupe_sets: Duplicate sets to report
        show_size: Whether to include human readable sizes

    Returns:
        Formatted report string
    """
    if not dupe_sets:
        return "No duplicate files found!\n"

    total_sets, total_files, total_space = analyze_dupes(dupe_sets)

    report_lines = [f"Found {total_sets} sets of duplicates ({total_files} dupes):", "-" * 60]
    for i, dupe_set in enumerate(dupe_sets, 1):
        report_lines.append(f"\nSet {i}:")
        report_lines.append(format_dupe_set(dupe_set, show_size=show_size))

    if total_space > 0:
        report_lines.append(f"\nTotal reclaimable space: {format_size(total_space)}")

    return "\n".join(report_lines)
