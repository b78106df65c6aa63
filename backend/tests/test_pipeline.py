"""Tests for the ingestion-triggered alert pipeline."""

import pytest

from buildwatch.schemas.alerts import AlertType
from buildwatch.schemas.measurements import ScadaMeasurement, ThermionixMeasurement
from buildwatch.services.notifier import AlertNotifier
from buildwatch.services.pipeline import AlertPipeline

from conftest import USER_ID, FailingPublisher, FakeProfileStore


@pytest.fixture
def pipeline(profile, store, publisher):
    return AlertPipeline(
        profiles=FakeProfileStore({USER_ID: profile}),
        store=store,
        notifier=AlertNotifier([publisher]),
    )


@pytest.fixture
def hot_and_stuffy(measured_at):
    return ThermionixMeasurement(
        datetime=measured_at, device_id=42, temperature=30.0, relative_humidity=45.0, co2=1500.0
    )


class TestOnMeasurementIngested:

    @pytest.mark.asyncio
    async def test_violations_are_written_and_broadcast(
        self, pipeline, store, publisher, device_entity, hot_and_stuffy
    ):
        alerts = await pipeline.on_measurement_ingested(hot_and_stuffy, device_entity, USER_ID)

        assert sorted(a.alert_type.value for a in alerts) == ["CO2_HIGH", "TEMP_HIGH"]
        assert len(store.alerts) == 2
        assert len(publisher.events) == 2
        assert {e[0] for e in publisher.events} == {f"alerts:{USER_ID}"}

    @pytest.mark.asyncio
    async def test_in_range_measurement(self, pipeline, store, publisher, device_entity, measured_at):
        m = ThermionixMeasurement(datetime=measured_at, device_id=42, temperature=24.0)

        assert await pipeline.on_measurement_ingested(m, device_entity, USER_ID) == []
        assert store.alerts == []
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_user_without_settings(self, store, publisher, device_entity, hot_and_stuffy):
        pipeline = AlertPipeline(FakeProfileStore(), store, AlertNotifier([publisher]))

        assert await pipeline.on_measurement_ingested(hot_and_stuffy, device_entity, USER_ID) == []
        assert store.alerts == []

    @pytest.mark.asyncio
    async def test_profile_lookup_error_is_contained(self, store, device_entity, hot_and_stuffy):
        pipeline = AlertPipeline(
            FakeProfileStore(error=ConnectionError("postgrest down")), store, AlertNotifier()
        )

        assert await pipeline.on_measurement_ingested(hot_and_stuffy, device_entity, USER_ID) == []

    @pytest.mark.asyncio
    async def test_failed_write_skips_only_that_violation(
        self, pipeline, store, publisher, device_entity, hot_and_stuffy
    ):
        store.fail_on.add(AlertType.TEMP_HIGH)

        alerts = await pipeline.on_measurement_ingested(hot_and_stuffy, device_entity, USER_ID)

        assert [a.alert_type for a in alerts] == [AlertType.CO2_HIGH]
        assert [a.alert_type for a in store.alerts] == [AlertType.CO2_HIGH]
        assert len(publisher.events) == 1

    @pytest.mark.asyncio
    async def test_broadcast_failure_keeps_alert(self, profile, store, device_entity, hot_and_stuffy):
        pipeline = AlertPipeline(
            FakeProfileStore({USER_ID: profile}), store, AlertNotifier([FailingPublisher()])
        )

        alerts = await pipeline.on_measurement_ingested(hot_and_stuffy, device_entity, USER_ID)

        assert len(alerts) == 2
        assert len(store.alerts) == 2

    @pytest.mark.asyncio
    async def test_repeat_measurement_refreshes_alert(
        self, pipeline, store, scada_entity, measured_at
    ):
        first = ScadaMeasurement(datetime=measured_at, location="L8", e=2.8)
        second = ScadaMeasurement(datetime=measured_at, location="L8", e=3.4)

        [a1] = await pipeline.on_measurement_ingested(first, scada_entity, USER_ID)
        [a2] = await pipeline.on_measurement_ingested(second, scada_entity, USER_ID)

        assert a1.id == a2.id
        assert len(store.alerts) == 1
        assert store.alerts[0].measured_value == 3.4
        assert store.alerts[0].location == "L8"
        assert store.alerts[0].device_id is None


class TestSchedule:

    @pytest.mark.asyncio
    async def test_schedule_runs_in_background(self, pipeline, store, device_entity, hot_and_stuffy):
        task = pipeline.schedule(hot_and_stuffy, device_entity, USER_ID)
        assert pipeline.pending == 1

        await pipeline.drain(timeout=1.0)

        assert task.done()
        assert pipeline.pending == 0
        assert len(store.alerts) == 2

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self, pipeline):
        await pipeline.drain()
        assert pipeline.pending == 0
