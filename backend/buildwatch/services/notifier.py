"""Live alert delivery to a user's connected clients.

Delivery is best effort and at most once: the alert row is already stored
by the time it is broadcast, so a failed publish is logged and dropped.
"""

import logging

import httpx

from buildwatch.schemas.alerts import Alert

logger = logging.getLogger(__name__)

NEW_ALERT_EVENT = "new_alert"


def alert_channel(user_id: str) -> str:
    """Per-user channel name the dashboard subscribes to."""
    return f"alerts:{user_id}"


class RealtimePublisher:
    """
    Publishes through Supabase Realtime's REST broadcast endpoint.

    Holds one authenticated HTTP client for the life of the process; call
    :meth:`start` at startup and :meth:`close` at shutdown.
    """

    def __init__(
        self,
        supabase_url: str,
        service_key: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = f"{supabase_url.rstrip('/')}/realtime/v1"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def publish(self, channel: str, event: str, payload: dict) -> None:
        if self._client is None:
            raise RuntimeError("RealtimePublisher.publish() called before start()")
        response = await self._client.post(
            "/api/broadcast",
            json={"messages": [{"topic": channel, "event": event, "payload": payload}]},
        )
        response.raise_for_status()


class AlertNotifier:
    """Broadcasts created/updated alerts through every configured publisher.

    A publisher is anything with ``async publish(channel, event, payload)``:
    :class:`RealtimePublisher` for browsers on Supabase Realtime and
    :class:`buildwatch.events.AlertEventBroadcaster` for the long-poll API.
    """

    def __init__(self, publishers=()):
        self._publishers = list(publishers)

    async def broadcast(self, alert: Alert) -> None:
        channel = alert_channel(alert.user_id)
        payload = alert.model_dump(mode="json")

        for publisher in self._publishers:
            try:
                await publisher.publish(channel, NEW_ALERT_EVENT, payload)
            except Exception as exc:
                logger.warning(
                    "Broadcast of alert %s via %s failed: %s",
                    alert.id, type(publisher).__name__, exc,
                )
                continue
            logger.debug(
                "Broadcast alert %s (%s, %s) to %s via %s",
                alert.id, alert.alert_type.value, alert.severity.value,
                channel, type(publisher).__name__,
            )
