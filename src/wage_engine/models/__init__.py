"""ORM models."""

from wage_engine.models.base import Base, TimestampMixin
from wage_engine.models.labor import EmploymentTaxRate, WorkerSalarySetting, WorkRecord
from wage_engine.models.snapshot import SalarySnapshotRow

__all__ = [
    "Base",
    "TimestampMixin",
    "EmploymentTaxRate",
    "SalarySnapshotRow",
    "WorkRecord",
    "WorkerSalarySetting",
]
