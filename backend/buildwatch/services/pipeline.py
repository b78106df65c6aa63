"""Alert pipeline — runs threshold detection for each ingested measurement.

    measurement -> load profile -> evaluate -> per violation: upsert, broadcast

Alerting is secondary to storing the measurement: ingestion endpoints call
:meth:`AlertPipeline.schedule` after their own write succeeded and return
without waiting. Nothing raised in here reaches the ingestion caller.
"""

import asyncio
import logging
from datetime import timedelta

from pydantic import BaseModel

from buildwatch.schemas.alerts import Alert, EntityContext
from buildwatch.services.alert_writer import DEDUP_WINDOW, upsert_alert
from buildwatch.services.evaluator import evaluate

logger = logging.getLogger(__name__)


class AlertPipeline:
    def __init__(
        self,
        profiles,
        store,
        notifier,
        window: timedelta = DEDUP_WINDOW,
    ):
        self.profiles = profiles
        self.store = store
        self.notifier = notifier
        self.window = window
        self._tasks: set[asyncio.Task] = set()

    async def on_measurement_ingested(
        self,
        measurement: BaseModel,
        entity: EntityContext,
        user_id: str,
    ) -> list[Alert]:
        """Evaluate one measurement and persist/broadcast its alerts.

        Returns the alerts written (mainly for tests); failures are logged.
        """
        written: list[Alert] = []
        try:
            profile = await self.profiles.get(user_id)
            if profile is None:
                logger.info("No threshold settings for user %s, skipping alert check", user_id)
                return written

            violations = evaluate(measurement, entity, profile)
            if not violations:
                return written

            logger.debug(
                "%d violation(s) for %s %s",
                len(violations), entity.source.value, entity.device_id or entity.location,
            )

            # Each violation is independent: a failed write skips only that one
            for violation in violations:
                alert = await upsert_alert(
                    violation, entity, user_id, self.store, window=self.window
                )
                if alert is None:
                    continue
                written.append(alert)
                await self.notifier.broadcast(alert)
        except Exception:
            logger.exception(
                "Alert check failed for user %s (%s)", user_id, entity.source.value
            )
        return written

    def schedule(
        self,
        measurement: BaseModel,
        entity: EntityContext,
        user_id: str,
    ) -> asyncio.Task:
        """Run :meth:`on_measurement_ingested` in the background."""
        task = asyncio.create_task(
            self.on_measurement_ingested(measurement, entity, user_id)
        )
        # The loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for in-flight alert checks (call on app shutdown)."""
        if not self._tasks:
            return
        logger.info("Waiting for %d pending alert check(s)", len(self._tasks))
        done, not_done = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning("Cancelled %d alert check(s) still running at shutdown", len(not_done))
