"""SQLAlchemy models for the measurement tables (schema reference only)."""

import datetime as dt
from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from buildwatch.models.alert import Base


class ThermionixMeasurement(Base):
    __tablename__ = "thermionyx_measurements"

    # Composite key: one row per probe per device per timestamp
    datetime: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    device_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    probe_id: Mapped[int] = mapped_column(Integer, primary_key=True, default=0)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    relative_humidity: Mapped[float | None] = mapped_column(Float, nullable=True)
    co2: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<ThermionixMeasurement device={self.device_id} t={self.temperature}>"


class ScadaMeasurement(Base):
    __tablename__ = "scada_measurements"

    datetime: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    location: Mapped[str] = mapped_column(String(255), primary_key=True)
    t_amb: Mapped[float | None] = mapped_column(Float, nullable=True)
    t_ref: Mapped[float | None] = mapped_column(Float, nullable=True)
    t_sup_prim: Mapped[float | None] = mapped_column(Float, nullable=True)
    t_ret_prim: Mapped[float | None] = mapped_column(Float, nullable=True)
    t_sup_sec: Mapped[float | None] = mapped_column(Float, nullable=True)
    t_ret_sec: Mapped[float | None] = mapped_column(Float, nullable=True)
    e: Mapped[float | None] = mapped_column(Float, nullable=True)
    pe: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<ScadaMeasurement {self.location} t_amb={self.t_amb} e={self.e}>"


class Device(Base):
    __tablename__ = "devices"

    device_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Device {self.device_id} {self.name}>"
