"""SQLAlchemy model for the user_settings table (schema reference only)."""

import uuid
from datetime import datetime, timezone
from sqlalchemy import DateTime, Float, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from buildwatch.models.alert import Base


class UserSettings(Base):
    __tablename__ = "user_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, server_default=text("gen_random_uuid()")
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), unique=True, nullable=False
    )
    expected_temp_min: Mapped[float] = mapped_column(Float, nullable=False, default=23.0)
    expected_temp_max: Mapped[float] = mapped_column(Float, nullable=False, default=26.0)
    expected_humidity_min: Mapped[float] = mapped_column(Float, nullable=False, default=30.0)
    expected_humidity_max: Mapped[float] = mapped_column(Float, nullable=False, default=60.0)
    expected_pressure_min: Mapped[float] = mapped_column(Float, nullable=False, default=1.5)
    expected_pressure_max: Mapped[float] = mapped_column(Float, nullable=False, default=2.5)
    expected_co2_min: Mapped[float] = mapped_column(Float, nullable=False, default=400.0)
    expected_co2_max: Mapped[float] = mapped_column(Float, nullable=False, default=1000.0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("now()"),
    )

    def __repr__(self) -> str:
        return f"<UserSettings user={self.user_id}>"
