"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for the SLA module.

Working hours and holidays are owned by unit administration; the engine
only reads them.
"""

from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database import Base


class SLAPolicyModel(Base):
    """
    Database model for SLAPolicy.

    Maps to the 'sla_policies' table. One row per (unit, priority).
    """
    __tablename__ = "sla_policies"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    unit_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    resolution_time_hours: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("unit_id", "priority", name="uq_sla_policies_unit_priority"),
    )


class WorkingHoursModel(Base):
    """
    Weekly schedule row. ``day_of_week`` 0 is Sunday.

    Maps to the 'unit_working_hours' table.
    """
    __tablename__ = "unit_working_hours"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    unit_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    is_working_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_hour: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    end_hour: Mapped[int] = mapped_column(Integer, nullable=False, default=16)

    __table_args__ = (
        UniqueConstraint("unit_id", "day_of_week", name="uq_working_hours_unit_day"),
    )


class HolidayModel(Base):
    """Maps to the 'unit_holidays' table."""
    __tablename__ = "unit_holidays"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    unit_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    holiday_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("unit_id", "holiday_date", name="uq_holidays_unit_date"),
    )
