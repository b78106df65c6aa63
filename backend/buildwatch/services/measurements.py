"""Service layer — measurement writes for the ingestion endpoints."""

from buildwatch.database import get_pool
from buildwatch.schemas.alerts import AlertSource, EntityContext
from buildwatch.schemas.measurements import ScadaMeasurement, ThermionixMeasurement

SCADA_FIELDS = (
    "t_amb", "t_ref", "t_sup_prim", "t_ret_prim", "t_sup_sec", "t_ret_sec", "e", "pe",
)


async def insert_thermionix(m: ThermionixMeasurement) -> ThermionixMeasurement:
    """Store one Thermionix reading; returns the row as written."""
    pool = await get_pool()
    row = await pool.fetchrow("""
        INSERT INTO thermionyx_measurements
            (datetime, device_id, probe_id, temperature, relative_humidity, co2)
        VALUES ($1, $2, $3, $4, $5, $6)
        RETURNING datetime, device_id, probe_id, temperature, relative_humidity, co2
    """, m.datetime, m.device_id, m.probe_id, m.temperature, m.relative_humidity, m.co2)
    return ThermionixMeasurement.model_validate(dict(row))


async def insert_scada(m: ScadaMeasurement) -> ScadaMeasurement:
    """Store one SCADA reading; returns the row as written."""
    pool = await get_pool()
    columns = ("datetime", "location", *SCADA_FIELDS)
    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    row = await pool.fetchrow(f"""
        INSERT INTO scada_measurements ({", ".join(columns)})
        VALUES ({placeholders})
        RETURNING {", ".join(columns)}
    """, *[getattr(m, c) for c in columns])
    return ScadaMeasurement.model_validate(dict(row))


async def thermionix_entity(device_id: int) -> EntityContext:
    """
    Alert context for a Thermionix device.

    The measurement's integer device_id is not a foreign key; the devices
    table keeps its own string id and the apartment name (e.g. "L8_33_67").
    """
    pool = await get_pool()
    name = await pool.fetchval(
        "SELECT name FROM devices WHERE device_id = $1", str(device_id)
    )
    return EntityContext(
        source=AlertSource.THERMIONIX,
        device_id=str(device_id),
        apartment_name=name,
    )


def scada_entity(m: ScadaMeasurement) -> EntityContext:
    return EntityContext(source=AlertSource.SCADA, location=m.location)
