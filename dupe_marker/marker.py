"""
Planning and applying the renames that mark duplicate files
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Tuple

from .core import Digest, DupeSet
from .errors import RenameError

logger = logging.getLogger(__name__)

DEFAULT_TAG = ".dupe"
DIGEST_FRAGMENT_BYTES = 8


class Rename(NamedTuple):
    source: Path
    destination: Path


@dataclass
class MarkResult:
    renamed: int = 0
    failed: List[Tuple[Rename, RenameError]] = field(default_factory=list)


def is_marked(name: str, tag: str = DEFAULT_TAG) -> bool:
    """Return True if a filename already carries the duplicate marker"""
    return name.endswith(tag)


def digest_fragment(digest: Optional[Digest]) -> str:
    """Return '.' followed by the hex of the digest's leading bytes"""
    if digest is None:
        return ""
    return "." + digest[:DIGEST_FRAGMENT_BYTES].hex()


def marked_path(
        path: Path,
        digest: Optional[Digest],
        tag: str = DEFAULT_TAG,
        with_digest: bool = True
) -> Path:
    """
    Build the name a duplicate is renamed to

    Args:
        path: Path of the duplicate
        digest: Content digest shared by the duplicate set
        tag: Marker suffix
        with_digest: Whether to embed a digest fragment before the marker

    Returns:
        path + optional digest fragment + tag
    """
    fragment = digest_fragment(digest) if with_digest else ""
    return Path(f"{path}{fragment}{tag}")


def plan_renames(
        dupe_sets: Iterable[DupeSet],
        tag: str = DEFAULT_TAG,
        with_digest: bool = True
) -> List[Rename]:
    """Return one rename per dupe, in set order; canonicals are never renamed"""
    renames = []
    for dupe_set in dupe_sets:
        for path in dupe_set.dupes:
            renames.append(Rename(path, marked_path(path, dupe_set.digest, tag, with_digest)))
    return renames


def apply_renames(renames: Iterable[Rename]) -> MarkResult:
    """
    Rename each duplicate to its marked name

    Failures are logged as warnings and recorded; the remaining renames still
    run. An existing destination is never overwritten.

    Args:
        renames: Renames to apply, in order

    Returns:
        MarkResult with the count of renamed files and the failures
    """
    result = MarkResult()

    for ren in renames:
        try:
            if os.path.lexists(ren.destination):
                raise FileExistsError(f"destination already exists: {ren.destination}")
            os.rename(ren.source, ren.destination)
        except OSError as e:
            error = RenameError(ren.source, ren.destination, e)
            logger.warning("%s", error)
            result.failed.append((ren, error))
            continue
        result.renamed += 1
        logger.debug("marked %s -> %s", ren.source, ren.destination)

    return result
