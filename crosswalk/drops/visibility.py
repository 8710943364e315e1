# FILE: crosswalk/drops/visibility.py
"""
Drop visibility surface.

Decides, per drop, whether the viewer gets the message text or a placeholder,
based on the viewer's live location and the drop's range class.

This is a display helper. GET /drops still returns the full message text for
every active drop in the area; clients (and /drops/{id}/view) apply the gating.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .distance import distance_meters, format_distance
from .range_policy import RangeClass, is_visible

LOCKED_PLACEHOLDER = "Get closer to read"


@dataclass
class DropView:
    drop_id: str
    visible: bool
    message: str
    distance_meters: Optional[float] = None
    distance_label: Optional[str] = None
    is_owner: bool = False


def evaluate_drop(
    drop,
    viewer_lat: Optional[float],
    viewer_lon: Optional[float],
    viewer_id: Optional[str],
) -> DropView:
    """
    Evaluate one drop for one viewer.

    `drop` needs id, user_id, message, latitude, longitude and range attributes
    (an ORM Drop or anything shaped like one). An unknown viewer location hides
    everything except the viewer's own drops and `anywhere` drops.
    """
    is_owner = viewer_id is not None and drop.user_id == viewer_id

    if viewer_lat is None or viewer_lon is None:
        visible = is_owner or RangeClass(drop.range) == RangeClass.ANYWHERE
        return DropView(
            drop_id=drop.id,
            visible=visible,
            message=drop.message if visible else LOCKED_PLACEHOLDER,
            is_owner=is_owner,
        )

    meters = distance_meters(viewer_lat, viewer_lon, drop.latitude, drop.longitude)
    visible = is_visible(drop.range, meters, is_owner)
    return DropView(
        drop_id=drop.id,
        visible=visible,
        message=drop.message if visible else LOCKED_PLACEHOLDER,
        distance_meters=meters,
        distance_label=format_distance(meters),
        is_owner=is_owner,
    )


def evaluate_drops(
    drops: Iterable,
    viewer_lat: Optional[float],
    viewer_lon: Optional[float],
    viewer_id: Optional[str],
) -> List[DropView]:
    """Cluster detail view: every pin evaluated against the same viewer."""
    return [evaluate_drop(d, viewer_lat, viewer_lon, viewer_id) for d in drops]
