"""Tests for live alert delivery."""

import asyncio
import json

import httpx
import pytest

from buildwatch.events import AlertEventBroadcaster
from buildwatch.services.notifier import (
    NEW_ALERT_EVENT,
    AlertNotifier,
    RealtimePublisher,
    alert_channel,
)

from conftest import USER_ID, FailingPublisher, RecordingPublisher, make_alert


class TestAlertNotifier:

    def test_channel_name(self):
        assert alert_channel(USER_ID) == f"alerts:{USER_ID}"

    @pytest.mark.asyncio
    async def test_broadcast_to_user_channel(self, publisher):
        alert = make_alert()
        await AlertNotifier([publisher]).broadcast(alert)

        [(channel, event, payload)] = publisher.events
        assert channel == f"alerts:{USER_ID}"
        assert event == NEW_ALERT_EVENT == "new_alert"
        assert payload["id"] == str(alert.id)
        assert payload["alert_type"] == "TEMP_HIGH"
        assert payload["severity"] == "LOW"

    @pytest.mark.asyncio
    async def test_failing_publisher_does_not_block_others(self, publisher):
        notifier = AlertNotifier([FailingPublisher(), publisher])

        await notifier.broadcast(make_alert())

        assert len(publisher.events) == 1

    @pytest.mark.asyncio
    async def test_no_publishers(self):
        await AlertNotifier().broadcast(make_alert())


class TestRealtimePublisher:

    @pytest.mark.asyncio
    async def test_posts_broadcast_message(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202)

        realtime = RealtimePublisher(
            "https://proj.supabase.co/", "service-key", transport=httpx.MockTransport(handler)
        )
        await realtime.start()
        try:
            await realtime.publish("alerts:u1", "new_alert", {"id": "a1"})
        finally:
            await realtime.close()

        [request] = requests
        assert request.method == "POST"
        assert str(request.url) == "https://proj.supabase.co/realtime/v1/api/broadcast"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"
        assert json.loads(request.content) == {
            "messages": [{"topic": "alerts:u1", "event": "new_alert", "payload": {"id": "a1"}}]
        }

    @pytest.mark.asyncio
    async def test_publish_before_start(self):
        realtime = RealtimePublisher("https://proj.supabase.co", "service-key")
        with pytest.raises(RuntimeError):
            await realtime.publish("alerts:u1", "new_alert", {})

    @pytest.mark.asyncio
    async def test_server_error_is_contained_by_notifier(self, publisher):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        realtime = RealtimePublisher("https://proj.supabase.co", "k", transport=transport)
        await realtime.start()
        try:
            with pytest.raises(httpx.HTTPStatusError):
                await realtime.publish("alerts:u1", "new_alert", {})

            await AlertNotifier([realtime, publisher]).broadcast(make_alert())
        finally:
            await realtime.close()

        assert len(publisher.events) == 1


class TestAlertEventBroadcaster:

    @pytest.mark.asyncio
    async def test_waiter_receives_event(self):
        broadcaster = AlertEventBroadcaster()
        waiter = asyncio.create_task(broadcaster.wait_for_event("alerts:u1", timeout=1.0))
        await asyncio.sleep(0.01)

        await broadcaster.publish("alerts:u1", "new_alert", {"id": "a1"})

        assert await waiter == ("new_alert", {"id": "a1"})

    @pytest.mark.asyncio
    async def test_other_channel_is_not_woken(self):
        broadcaster = AlertEventBroadcaster()
        waiter = asyncio.create_task(broadcaster.wait_for_event("alerts:u1", timeout=0.05))
        await asyncio.sleep(0.01)

        await broadcaster.publish("alerts:u2", "new_alert", {"id": "a1"})

        assert await waiter is None

    @pytest.mark.asyncio
    async def test_timeout(self):
        broadcaster = AlertEventBroadcaster()
        assert await broadcaster.wait_for_event("alerts:u1", timeout=0.01) is None

    @pytest.mark.asyncio
    async def test_notifier_feeds_long_poll(self):
        broadcaster = AlertEventBroadcaster()
        alert = make_alert()
        waiter = asyncio.create_task(
            broadcaster.wait_for_event(alert_channel(USER_ID), timeout=1.0)
        )
        await asyncio.sleep(0.01)

        await AlertNotifier([broadcaster, RecordingPublisher()]).broadcast(alert)

        event, payload = await waiter
        assert event == "new_alert"
        assert payload["id"] == str(alert.id)
