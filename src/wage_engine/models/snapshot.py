"""Salary snapshot row (primary storage tier)."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import CheckConstraint, Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from wage_engine.models.base import Base, JSONType


class SalarySnapshotRow(Base):
    """One issued wage snapshot per (worker_id, year, month)."""

    __tablename__ = "salary_snapshots"

    worker_id: Mapped[str] = mapped_column(String, primary_key=True)
    year: Mapped[int] = mapped_column(Integer, primary_key=True)
    month: Mapped[int] = mapped_column(Integer, primary_key=True)

    period_label: Mapped[str | None] = mapped_column(String)
    schema_version: Mapped[str] = mapped_column(String, nullable=False)
    template_version: Mapped[str | None] = mapped_column(String)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    issuer_id: Mapped[str | None] = mapped_column(String)

    employment_classification: Mapped[str] = mapped_column(String, nullable=False)
    daily_rate: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    workdays: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_labor_days: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    base_pay: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    bonus_pay: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    gross_pay: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    deductions: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric, nullable=False)

    status: Mapped[str] = mapped_column(String, nullable=False, default="issued")
    approver_id: Mapped[str | None] = mapped_column(String)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payer_id: Mapped[str | None] = mapped_column(String)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    site_count: Mapped[int | None] = mapped_column(Integer)
    first_workday: Mapped[date | None] = mapped_column(Date)
    last_workday: Mapped[date | None] = mapped_column(Date)
    total_work_hours: Mapped[Decimal | None] = mapped_column(Numeric)
    total_overtime_hours: Mapped[Decimal | None] = mapped_column(Numeric)
    extra_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSONType)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('issued', 'approved', 'paid')",
            name="salary_snapshots_status_check",
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="salary_snapshots_month_check"),
    )
