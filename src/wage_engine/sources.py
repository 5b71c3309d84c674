"""SQL-backed implementations of the labor, worker and rate sources."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wage_engine.calculators.types import EmploymentProfile, LaborRecord
from wage_engine.models import EmploymentTaxRate, WorkerSalarySetting, WorkRecord


class SqlLaborRecordSource:
    """Labor records from the work_records table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_for_worker_in_range(
        self, worker_id: str, start_date: date, end_date: date
    ) -> list[LaborRecord]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(WorkRecord)
                .where(
                    WorkRecord.worker_id == worker_id,
                    WorkRecord.work_date >= start_date,
                    WorkRecord.work_date <= end_date,
                )
                .order_by(WorkRecord.work_date)
            )
            rows = result.scalars().all()

        return [
            LaborRecord(
                worker_id=row.worker_id,
                work_date=row.work_date,
                site_id=row.site_id,
                hours=row.work_hours,
                labor_days=row.labor_days,
                bonus_pay=row.bonus_pay,
                record_id=row.id,
            )
            for row in rows
        ]


class SqlWorkerConfigurationSource:
    """Employment profiles from the worker_salary_settings table.

    The active setting with the latest effective date wins.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_employment_profile(self, worker_id: str) -> EmploymentProfile | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(WorkerSalarySetting)
                .where(
                    WorkerSalarySetting.worker_id == worker_id,
                    WorkerSalarySetting.is_active.is_(True),
                )
                .order_by(WorkerSalarySetting.effective_date.desc())
                .limit(1)
            )
            setting = result.scalar_one_or_none()

        if setting is None:
            return None
        return EmploymentProfile(
            worker_id=worker_id,
            classification=setting.employment_type,
            daily_rate=setting.daily_rate,
            custom_rates=setting.custom_tax_rates or {},
        )


class SqlRateTableSource:
    """Deduction rates from the employment_tax_rates table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_rates_for(self, classification: str) -> dict[str, Any]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(EmploymentTaxRate.tax_name, EmploymentTaxRate.rate).where(
                    EmploymentTaxRate.employment_type == classification,
                    EmploymentTaxRate.is_active.is_(True),
                )
            )
            return {name: Decimal(str(rate)) for name, rate in result.all()}
