"""
dupe-marker - find duplicate files in each directory of a tree and mark them
"""

__version__ = "1.0.0"
__author__ = "Ilya Boyarnikov"
__description__ = "A tool to find and mark duplicate files"

from .core import (
    DupeSet,
    calculate_file_digest,
    group_by_size,
    identify_dupes,
    format_size,
    analyze_dupes,
    get_dupes_report,
)
from .marker import (
    DEFAULT_TAG,
    Rename,
    MarkResult,
    plan_renames,
    apply_renames,
)
from .scanner import (
    list_directory,
    iter_listings,
    scan_tree,
    collect,
)
from .errors import (
    DupeMarkerError,
    TraversalError,
    DigestReadError,
    RenameError,
)
