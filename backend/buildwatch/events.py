"""In-process event broadcasting for connected alert clients (long-poll)."""

import asyncio
from typing import Dict


class AlertEventBroadcaster:
    """Fans out alert events to waiters subscribed to the same channel."""

    def __init__(self):
        # channel -> asyncio.Condition for that channel's waiters
        self._channel_conditions: Dict[str, asyncio.Condition] = {}
        # channel -> (event, payload) most recently published
        self._latest: Dict[str, tuple[str, dict]] = {}
        self._lock = asyncio.Lock()

    async def _get_condition(self, channel: str) -> asyncio.Condition:
        """Get or create a Condition for the given channel."""
        async with self._lock:
            if channel not in self._channel_conditions:
                self._channel_conditions[channel] = asyncio.Condition()
            return self._channel_conditions[channel]

    async def publish(self, channel: str, event: str, payload: dict) -> None:
        """Wake every waiter on ``channel`` with the new event."""
        condition = await self._get_condition(channel)
        async with condition:
            self._latest[channel] = (event, payload)
            condition.notify_all()

    async def wait_for_event(
        self, channel: str, timeout: float = 15.0
    ) -> tuple[str, dict] | None:
        """
        Wait for the next event published on ``channel``.

        Returns:
            (event, payload), or None if the timeout elapsed first
        """
        condition = await self._get_condition(channel)
        async with condition:
            try:
                await asyncio.wait_for(condition.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                return None
            return self._latest.get(channel)
