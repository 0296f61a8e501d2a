"""
Exception and warning types raised by the recipe gallery.
"""

from typing import Iterable


class GalleryError(Exception):
    """Base class for recipe gallery errors."""


class SchemaMismatch(GalleryError, KeyError):
    """A pipeline step referenced a column that is absent from its input."""

    def __init__(self, step: str, missing: Iterable[str], available: Iterable[str] = ()):
        self.step = step
        self.missing = sorted(str(col) for col in missing)
        self.available = [str(col) for col in available]
        super().__init__(step, self.missing)

    def __str__(self):
        message = f"{self.step}: unknown column(s) {', '.join(self.missing)}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        return message


class ArtifactWriteError(GalleryError, OSError):
    """A rendered artifact could not be written to disk."""


class PostProcessUnavailable(UserWarning):
    """Whitespace trimming could not run; the untrimmed artifact was kept."""
