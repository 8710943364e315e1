# FILE: crosswalk/drops/range_policy.py
"""
Range classes and the distance thresholds that gate reading a drop.

The table is fixed. A drop's range class is validated when the drop is
written; the lookups here never guess a default for an unknown class.
"""

import math
from enum import Enum
from typing import Dict, Union


class RangeClass(str, Enum):
    CLOSE = "close"
    FAR = "far"
    ANYWHERE = "anywhere"


RANGE_THRESHOLDS_METERS: Dict[RangeClass, float] = {
    RangeClass.CLOSE: 15.0,
    RangeClass.FAR: 100.0,
    RangeClass.ANYWHERE: math.inf,
}

_LABELS = {
    RangeClass.CLOSE: ("Close", "Within 15 meters"),
    RangeClass.FAR: ("Far", "Within 100 meters"),
    RangeClass.ANYWHERE: ("Anywhere", "Readable from anywhere"),
}


def _coerce(range_class: Union[RangeClass, str]) -> RangeClass:
    # Raises ValueError for anything outside the enum
    return RangeClass(range_class)


def threshold(range_class: Union[RangeClass, str]) -> float:
    """Meters within which a non-owner may read a drop of this class."""
    return RANGE_THRESHOLDS_METERS[_coerce(range_class)]


def is_visible(range_class: Union[RangeClass, str], distance_meters: float, is_owner: bool) -> bool:
    """Authors always see their own drops. Everyone else needs distance <= threshold."""
    if is_owner:
        return True
    return distance_meters <= threshold(range_class)


def range_label(range_class: Union[RangeClass, str]) -> str:
    return _LABELS[_coerce(range_class)][0]


def range_description(range_class: Union[RangeClass, str]) -> str:
    return _LABELS[_coerce(range_class)][1]
