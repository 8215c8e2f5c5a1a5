"""
Exceptions raised while scanning and marking duplicate files
"""

from pathlib import Path
from typing import Optional


class DupeMarkerError(Exception):
    """Base class for all dupe-marker errors"""


class TraversalError(DupeMarkerError):
    """A directory could not be listed"""

    def __init__(self, path: Path, cause: Optional[OSError] = None):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"cannot list directory '{self.path}': {cause}")


class DigestReadError(DupeMarkerError):
    """A candidate file could not be fully read while digesting it"""

    def __init__(self, path: Path, cause: Optional[OSError] = None):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"cannot read '{self.path}': {cause}")


class RenameError(DupeMarkerError):
    """Marking a duplicate failed; the file stays unmarked"""

    def __init__(self, source: Path, destination: Path, cause: Optional[OSError] = None):
        self.source = Path(source)
        self.destination = Path(destination)
        self.cause = cause
        super().__init__(f"cannot rename '{self.source}' to '{self.destination}': {cause}")
