# crosswalk/realtime/fanout.py
"""
Realtime fan-out over Pusher Channels.

Delivery is fire-and-forget: at-most-once, unordered. A failed publish is
logged and never reaches the request that triggered it.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

import pusher

from crosswalk.config import PusherSettings

logger = logging.getLogger(__name__)

DROPS_CHANNEL = "drops"


def user_channel(user_id: str) -> str:
    return f"user-{user_id}"


class FanoutChannel(Protocol):
    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        ...


class PusherFanout:
    def __init__(self, settings: PusherSettings, client: Optional[pusher.Pusher] = None):
        self._client = client or pusher.Pusher(
            app_id=settings.app_id,
            key=settings.key,
            secret=settings.secret,
            cluster=settings.cluster,
            ssl=True,
        )

    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        try:
            # The pusher client is synchronous
            await asyncio.to_thread(self._client.trigger, channel, event, payload)
            logger.debug("[fanout] %s -> %s", event, channel)
        except Exception as exc:
            logger.error("[fanout] publish %s to %s failed: %s", event, channel, exc)


class NullFanout:
    """Used when Pusher credentials are not configured."""

    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        logger.debug("[fanout] not configured, dropping %s -> %s", event, channel)


async def broadcast_new_drop(fanout: FanoutChannel, drop: Dict[str, Any]) -> None:
    await fanout.publish(DROPS_CHANNEL, "new_drop", drop)


async def broadcast_delete_drop(fanout: FanoutChannel, drop_id: str) -> None:
    await fanout.publish(DROPS_CHANNEL, "delete_drop", {"id": drop_id})


async def broadcast_highfive(
    fanout: FanoutChannel,
    *,
    drop_id: str,
    to_user_id: str,
    from_user_id: str,
    from_user_name: Optional[str],
    notification_id: str,
) -> None:
    await fanout.publish(
        user_channel(to_user_id),
        "highfive",
        {
            "dropId": drop_id,
            "toUserId": to_user_id,
            "fromUserId": from_user_id,
            "fromUserName": from_user_name,
            "notificationId": notification_id,
        },
    )
