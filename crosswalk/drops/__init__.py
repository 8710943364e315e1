# crosswalk/drops/__init__.py
"""
Drops: short messages pinned to a coordinate, readable only within range.
"""

from .range_policy import RangeClass, RANGE_THRESHOLDS_METERS, threshold, is_visible
from .distance import distance_meters, bounding_box
from .visibility import DropView, evaluate_drop, evaluate_drops, LOCKED_PLACEHOLDER

__all__ = [
    "RangeClass",
    "RANGE_THRESHOLDS_METERS",
    "threshold",
    "is_visible",
    "distance_meters",
    "bounding_box",
    "DropView",
    "evaluate_drop",
    "evaluate_drops",
    "LOCKED_PLACEHOLDER",
]
