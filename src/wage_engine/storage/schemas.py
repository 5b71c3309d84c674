"""Pydantic schema for the self-describing snapshot document."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from wage_engine.calculators.types import MonthlySnapshot


class SnapshotDocument(BaseModel):
    """Flat serialized form of a MonthlySnapshot.

    schema_version and template_version travel with every document so that
    readers can detect format changes.
    """

    model_config = ConfigDict(extra="ignore")

    schema_version: str
    template_version: str
    worker_id: str
    year: int = Field(ge=1900, le=9999)
    month: int = Field(ge=1, le=12)
    period_label: str
    issued_at: datetime
    issuer_id: str | None = None
    employment_classification: str
    daily_rate: Decimal
    period_start: date
    period_end: date
    workdays: int = 0
    total_labor_days: Decimal
    base_pay: Decimal
    overtime_pay: Decimal
    bonus_pay: Decimal
    gross_pay: Decimal
    deductions: dict[str, Decimal] = Field(default_factory=dict)
    total_deductions: Decimal
    net_pay: Decimal
    status: str = "issued"
    approver_id: str | None = None
    approved_at: datetime | None = None
    payer_id: str | None = None
    paid_at: datetime | None = None
    site_count: int = 0
    first_workday: date | None = None
    last_workday: date | None = None
    total_work_hours: Decimal = Decimal("0")
    total_overtime_hours: Decimal = Decimal("0")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_snapshot(cls, snapshot: MonthlySnapshot) -> SnapshotDocument:
        return cls(**asdict(snapshot))

    def to_snapshot(self) -> MonthlySnapshot:
        return MonthlySnapshot(**self.model_dump())
