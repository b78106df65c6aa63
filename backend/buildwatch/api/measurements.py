"""API routes for measurement ingestion.

Each stored measurement is handed to the alert pipeline in the background;
the response never waits on, or fails because of, alert detection.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from buildwatch.auth import get_current_user_id
from buildwatch.dependencies import get_pipeline, get_profile_store
from buildwatch.schemas.alerts import AlertSource, EntityContext
from buildwatch.schemas.measurements import (
    IngestError,
    IngestResponse,
    ScadaBatch,
    ScadaMeasurement,
    ThermionixBatch,
    ThermionixMeasurement,
)
from buildwatch.services.measurements import (
    insert_scada,
    insert_thermionix,
    scada_entity,
    thermionix_entity,
)
from buildwatch.services.pipeline import AlertPipeline
from buildwatch.services.settings_store import ThresholdProfileStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Measurements"])


async def _require_settings(profiles: ThresholdProfileStore, user_id: str) -> None:
    if await profiles.get(user_id) is None:
        raise HTTPException(status_code=404, detail="User settings not found")


def _error(raw: dict, exc: Exception) -> IngestError:
    if isinstance(exc, ValidationError):
        return IngestError(measurement=raw, error=str(exc.errors(include_url=False)))
    return IngestError(measurement=raw, error=str(exc))


# ── POST /thermionix ────────────────────────────────


@router.post(
    "/thermionix",
    response_model=IngestResponse,
    response_model_exclude_none=True,
    status_code=201,
    summary="Store Thermionix measurements and trigger alert detection",
)
async def create_thermionix_measurements(
    body: ThermionixBatch,
    user_id: str = Depends(get_current_user_id),
    profiles: ThresholdProfileStore = Depends(get_profile_store),
    pipeline: AlertPipeline = Depends(get_pipeline),
):
    try:
        await _require_settings(profiles, user_id)

        created: list[ThermionixMeasurement] = []
        errors: list[IngestError] = []
        entities: dict[int, EntityContext] = {}

        for raw in body.measurements:
            try:
                measurement = await insert_thermionix(ThermionixMeasurement.model_validate(raw))
            except Exception as exc:
                errors.append(_error(raw, exc))
                continue
            created.append(measurement)

            if measurement.device_id not in entities:
                try:
                    entities[measurement.device_id] = await thermionix_entity(measurement.device_id)
                except Exception:
                    logger.exception("Device lookup failed for %s", measurement.device_id)
                    entities[measurement.device_id] = EntityContext(
                        source=AlertSource.THERMIONIX, device_id=str(measurement.device_id)
                    )
            pipeline.schedule(measurement, entities[measurement.device_id], user_id)

        logger.info(
            "Thermionix ingest for user %s: %d stored, %d rejected",
            user_id, len(created), len(errors),
        )
        return IngestResponse(
            created=len(created),
            errors=errors or None,
            measurements=[m.model_dump(mode="json") for m in created],
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Thermionix ingest failed for user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to create measurements")


# ── POST /scada ─────────────────────────────────────


@router.post(
    "/scada",
    response_model=IngestResponse,
    response_model_exclude_none=True,
    status_code=201,
    summary="Store SCADA measurements and trigger alert detection",
)
async def create_scada_measurements(
    body: ScadaBatch,
    user_id: str = Depends(get_current_user_id),
    profiles: ThresholdProfileStore = Depends(get_profile_store),
    pipeline: AlertPipeline = Depends(get_pipeline),
):
    try:
        await _require_settings(profiles, user_id)

        created: list[ScadaMeasurement] = []
        errors: list[IngestError] = []

        for raw in body.measurements:
            try:
                measurement = await insert_scada(ScadaMeasurement.model_validate(raw))
            except Exception as exc:
                errors.append(_error(raw, exc))
                continue
            created.append(measurement)
            pipeline.schedule(measurement, scada_entity(measurement), user_id)

        logger.info(
            "SCADA ingest for user %s: %d stored, %d rejected",
            user_id, len(created), len(errors),
        )
        return IngestResponse(
            created=len(created),
            errors=errors or None,
            measurements=[m.model_dump(mode="json") for m in created],
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("SCADA ingest failed for user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to create measurements")
