"""Shared value objects used across tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ImageData:
    """Reference to an image file with metadata."""

    path: Path
    width: int
    height: int
    format: str


@dataclass(frozen=True)
class BatchWorkItem:
    """One (palette, image) pairing and the file its colorized copy goes to."""

    palette: Path
    image: Path
    output: Path


@dataclass(frozen=True)
class Success:
    """A work item that produced its output raster."""

    path: Path


@dataclass(frozen=True)
class Failure:
    """A work item that could not be processed."""

    reason: str


Outcome = Success | Failure


@dataclass(frozen=True)
class BatchResult:
    """Result of a batch colorization run."""

    items: tuple[BatchWorkItem, ...]
    outcomes: dict[BatchWorkItem, Outcome] = field(default_factory=dict)
    report_path: Path | None = None

    @property
    def succeeded(self) -> int:
        """Return the number of work items that produced an image."""
        return sum(1 for outcome in self.outcomes.values() if isinstance(outcome, Success))

    @property
    def failed(self) -> int:
        """Return the number of work items that failed."""
        return sum(1 for outcome in self.outcomes.values() if isinstance(outcome, Failure))
