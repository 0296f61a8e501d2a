"""
Inline label placement for highlighted series.

Positions are expressed as fractions of the value axis (0 = bottom,
1 = top). Labels are placed in priority order. Each label sits at its
anchor unless that collides with a label already placed; it then takes the
first free offset position, above before below. "Free" means at least
``min_gap`` away from every placed label. Labels with no free candidate are
dropped, so the lowest-priority labels are the ones lost.
"""

from dataclasses import dataclass
from typing import Any, List, Sequence


@dataclass(frozen=True)
class LabelCandidate:
    text: str
    anchor: float
    priority: float
    x: Any = None


@dataclass(frozen=True)
class PlacedLabel:
    text: str
    anchor: float
    position: float
    x: Any = None


def candidate_positions(anchor: float, gap: float) -> List[float]:
    """The anchor itself, then one ``gap`` above and one below, clamped to the axis."""
    positions = []
    for offset in (0.0, gap, -gap):
        pos = min(max(anchor + offset, 0.0), 1.0)
        if pos not in positions:
            positions.append(pos)
    return positions


def place_labels(candidates: Sequence[LabelCandidate], min_gap: float = 0.05) -> List[PlacedLabel]:
    """Resolve label collisions; returns placed labels in priority order."""
    placed: List[PlacedLabel] = []
    for candidate in sorted(candidates, key=lambda c: c.priority, reverse=True):
        for position in candidate_positions(candidate.anchor, min_gap):
            if all(abs(position - other.position) >= min_gap - 1e-9 for other in placed):
                placed.append(PlacedLabel(candidate.text, candidate.anchor, position, candidate.x))
                break
    return placed
