"""Work records, worker pay settings and deduction rate tables."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from wage_engine.models.base import Base, JSONType, TimestampMixin


def _new_id() -> str:
    return str(uuid4())


class WorkRecord(Base, TimestampMixin):
    """Daily labor entry for a worker at a site.

    labor_days is the labor-day fraction (1.0 = one standard day);
    work_hours, when present, takes precedence in the calculation.
    """

    __tablename__ = "work_records"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    worker_id: Mapped[str] = mapped_column(String, nullable=False)
    site_id: Mapped[str | None] = mapped_column(String)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    labor_days: Mapped[Decimal | None] = mapped_column(Numeric)
    work_hours: Mapped[Decimal | None] = mapped_column(Numeric)
    bonus_pay: Mapped[Decimal | None] = mapped_column(Numeric)

    __table_args__ = (Index("ix_work_records_worker_date", "worker_id", "work_date"),)


class WorkerSalarySetting(Base, TimestampMixin):
    """Employment classification and daily rate for a worker."""

    __tablename__ = "worker_salary_settings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    worker_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    employment_type: Mapped[str] = mapped_column(String, nullable=False)
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric)
    custom_tax_rates: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class EmploymentTaxRate(Base, TimestampMixin):
    """One named deduction percentage for an employment classification."""

    __tablename__ = "employment_tax_rates"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    employment_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    tax_name: Mapped[str] = mapped_column(String, nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("rate >= 0 AND rate <= 100", name="employment_tax_rates_rate_check"),
    )
