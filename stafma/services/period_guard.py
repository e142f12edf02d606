"""
Stafma Payroll - Payroll Period Guard

Decides whether a tenant may run payroll for a (month, year) period:

1. The period must not have been processed already.
2. The period must not start before the tenant's registration month.
3. The period must not be in the future, unless it is a configured bypass
   period (PAYROLL_BYPASS_PERIODS).

``validate`` only reads. ``claim`` writes the processed marker; the unique
constraint on payroll_periods makes two concurrent claims for the same period
impossible, so the loser gets the same error as a sequential duplicate.
Claims are flushed, not committed: the marker becomes visible together with
the payroll records of the run.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.config import settings
from stafma.models.payroll import PayrollPeriod, PayrollRecord
from stafma.models.tenant import Tenant
from stafma.utils.error_handling import (
    PeriodInvalidException,
    TenantNotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)


def validate_month_year(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationException(f"Month must be between 1 and 12, got {month}", field="month")
    if year < 1:
        raise ValidationException(f"Year must be positive, got {year}", field="year")


class PeriodGuard:
    """Eligibility checks and the atomic claim for payroll periods."""

    def __init__(
        self,
        db: AsyncSession,
        today: Optional[Callable[[], date]] = None,
        bypass_periods: Optional[Iterable[Tuple[int, int]]] = None,
    ):
        self.db = db
        self.today = today or date.today
        if bypass_periods is None:
            bypass_periods = settings.payroll_bypass_period_list
        # (year, month) pairs
        self.bypass_periods = frozenset(bypass_periods)

    async def get_processed_date(
        self, tenant_id: uuid.UUID, month: int, year: int
    ) -> Optional[datetime]:
        """When the period was first processed, or None."""
        result = await self.db.execute(
            select(PayrollPeriod.processed_date).where(
                PayrollPeriod.tenant_id == tenant_id,
                PayrollPeriod.month == month,
                PayrollPeriod.year == year,
            )
        )
        processed_date = result.scalar_one_or_none()
        if processed_date is not None:
            return processed_date

        # Records written by the single-employee path carry no period marker
        result = await self.db.execute(
            select(func.min(PayrollRecord.processed_date)).where(
                PayrollRecord.tenant_id == tenant_id,
                PayrollRecord.month == month,
                PayrollRecord.year == year,
            )
        )
        return result.scalar_one_or_none()

    async def is_processed(self, tenant_id: uuid.UUID, month: int, year: int) -> bool:
        return await self.get_processed_date(tenant_id, month, year) is not None

    async def validate(self, tenant_id: uuid.UUID, month: int, year: int) -> None:
        """Raise PeriodInvalidException unless the period may be processed."""
        validate_month_year(month, year)

        processed_date = await self.get_processed_date(tenant_id, month, year)
        if processed_date is not None:
            raise PeriodInvalidException(
                month, year, PeriodInvalidException.DUPLICATE, processed_date=processed_date,
            )

        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundException(tenant_id)

        period_start = date(year, month, 1)
        if period_start < tenant.registered_on.replace(day=1):
            raise PeriodInvalidException(month, year, PeriodInvalidException.BEFORE_REGISTRATION)

        current_month = self.today().replace(day=1)
        if period_start > current_month:
            if (year, month) in self.bypass_periods:
                logger.warning(f"Future payroll period {month}/{year} allowed by bypass list")
            else:
                raise PeriodInvalidException(month, year, PeriodInvalidException.FUTURE)

    async def claim(self, tenant_id: uuid.UUID, month: int, year: int) -> PayrollPeriod:
        """
        Insert the processed marker for the period and flush it.

        The caller commits the marker together with the payroll records.
        Raises PeriodInvalidException(duplicate) when another run holds the period.
        """
        period = PayrollPeriod(
            tenant_id=tenant_id,
            month=month,
            year=year,
            processed_date=datetime.now(timezone.utc),
            processed_count=0,
        )
        self.db.add(period)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(f"Payroll period {month}/{year} already claimed for tenant {tenant_id}")
            processed_date = await self.get_processed_date(tenant_id, month, year)
            raise PeriodInvalidException(
                month, year, PeriodInvalidException.DUPLICATE, processed_date=processed_date,
            )

        logger.info(f"Claimed payroll period {month}/{year} for tenant {tenant_id}")
        return period
