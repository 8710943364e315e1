# crosswalk/realtime/__init__.py
"""Best-effort realtime fan-out to subscribed clients."""

from .fanout import FanoutChannel, PusherFanout, NullFanout

__all__ = ["FanoutChannel", "PusherFanout", "NullFanout"]
