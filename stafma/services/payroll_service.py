"""
Stafma Payroll - Payroll Service

Monthly payroll for a tenant:

1. The period guard checks the period (not processed, not before
   registration, not in the future).
2. Every active employee gets a payroll record, bank details or not.
3. Employees with bank details and a positive net salary are paid through
   the disbursement service.
4. Problems with one employee become warnings; the run carries on.

The period marker and all payroll records of a run are committed together;
transfers happen afterwards and record their own outcome, so a failed
transfer never undoes a payroll record.

The single-employee path is a correction tool: it recomputes one employee's
record for a period and overwrites it, without the period checks and without
paying anything.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.config import settings
from stafma.models.payroll import PayrollRecord, PayrollRecordSource
from stafma.models.tenant import Tenant
from stafma.models.transaction import Transaction
from stafma.services.deduction_policy import ZERO, to_money
from stafma.services.disbursement_service import DisbursementRequest, DisbursementService
from stafma.services.employee_service import EmployeeService
from stafma.services.payroll_calculator import PayrollCalculator
from stafma.services.period_guard import PeriodGuard, validate_month_year
from stafma.services.tenant_service import TenantService
from stafma.services.transfer_gateway import BankDetails
from stafma.utils.error_handling import AppException, NoActiveEmployeesException

logger = logging.getLogger(__name__)


@dataclass
class PayrollRunResult:
    """Outcome of a payroll run."""
    processed_count: int
    warnings: List[str] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)


def payroll_source_account(tenant: Tenant) -> BankDetails:
    """Account salaries are paid from."""
    return BankDetails(
        bank_name=settings.disbursement_bank_name,
        account_name=tenant.name,
        account_number=tenant.settlement_account_number or settings.payroll_source_account_number,
    )


class PayrollService:
    """
    Payroll service for processing payroll and reading payroll history.
    """

    def __init__(
        self,
        db: AsyncSession,
        disbursement: Optional[DisbursementService] = None,
        period_guard: Optional[PeriodGuard] = None,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self.db = db
        self.disbursement = disbursement or DisbursementService(db)
        self.period_guard = period_guard or PeriodGuard(db)
        self.calculator = calculator or PayrollCalculator()
        self.employees = EmployeeService(db)
        self.tenants = TenantService(db)

    # ===========================================
    # PAYROLL RUN
    # ===========================================

    async def process_payroll(self, tenant_id: uuid.UUID, month: int, year: int) -> PayrollRunResult:
        """
        Process payroll for every active employee of the tenant.

        Raises PeriodInvalidException or NoActiveEmployeesException when the
        whole run is rejected; everything else is reported as warnings.
        """
        logger.info(f"Processing payroll {month}/{year} for tenant {tenant_id}")

        await self.period_guard.validate(tenant_id, month, year)
        tenant = await self.tenants.get_tenant(tenant_id)

        employees = await self.employees.list_active_employees(tenant_id)
        if not employees:
            raise NoActiveEmployeesException()

        period = await self.period_guard.claim(tenant_id, month, year)
        source = payroll_source_account(tenant)

        warnings: List[str] = []
        records: List[PayrollRecord] = []
        payees = []

        for employee in employees:
            try:
                line = self.calculator.calculate(employee.compensation)
            except AppException as e:
                warning = f"Error processing {employee.full_name}: {e.message}"
                logger.warning(warning)
                warnings.append(warning)
                continue

            record = PayrollRecord(
                tenant_id=tenant_id,
                employee_id=employee.id,
                month=month,
                year=year,
                processed_date=period.processed_date,
                source=PayrollRecordSource.PAYROLL_RUN,
                **line.as_record_fields(),
            )
            self.db.add(record)
            records.append(record)

            destination = employee.bank_details
            if destination is None:
                warnings.append(f"No bank details found for {employee.full_name}")
                continue
            if line.net_salary <= ZERO:
                warnings.append(
                    f"Net salary for {employee.full_name} is {line.net_salary}; no transfer made"
                )
                continue
            payees.append((employee, record, destination))

        period.processed_count = len(records)
        await self.db.commit()

        transactions = await self.disbursement.disburse_many([
            DisbursementRequest(
                tenant_id=tenant_id,
                employee_id=employee.id,
                amount=record.net_salary,
                source=source,
                destination=destination,
                payroll_record_id=record.id,
            )
            for employee, record, destination in payees
        ])

        logger.info(
            f"Payroll {month}/{year} for tenant {tenant_id}: {len(records)} records, "
            f"{len(transactions)} transfers, {len(warnings)} warnings"
        )
        return PayrollRunResult(
            processed_count=len(records),
            warnings=warnings,
            transactions=transactions,
        )

    # ===========================================
    # SINGLE EMPLOYEE CORRECTION
    # ===========================================

    async def process_single_employee(
        self,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        month: int,
        year: int,
    ) -> PayrollRecord:
        """
        Recompute one employee's payroll record for a period, creating or
        overwriting it. Skips the period checks and makes no transfer.
        """
        validate_month_year(month, year)
        employee = await self.employees.get_employee(tenant_id, employee_id)
        line = self.calculator.calculate(employee.compensation)
        values = {
            **line.as_record_fields(),
            "processed_date": datetime.now(timezone.utc),
            "source": PayrollRecordSource.SINGLE_EMPLOYEE,
        }

        employee_number = employee.employee_number
        record = await self._upsert_record(tenant_id, employee.id, month, year, values)
        logger.info(
            f"Recomputed payroll {month}/{year} for employee {employee_number} "
            f"of tenant {tenant_id}"
        )
        return record

    async def _get_record(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, month: int, year: int
    ) -> Optional[PayrollRecord]:
        result = await self.db.execute(
            select(PayrollRecord).where(
                PayrollRecord.tenant_id == tenant_id,
                PayrollRecord.employee_id == employee_id,
                PayrollRecord.month == month,
                PayrollRecord.year == year,
            )
        )
        return result.scalar_one_or_none()

    async def _upsert_record(
        self,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        month: int,
        year: int,
        values: Dict[str, Any],
    ) -> PayrollRecord:
        record = await self._get_record(tenant_id, employee_id, month, year)
        if record is None:
            record = PayrollRecord(
                tenant_id=tenant_id, employee_id=employee_id, month=month, year=year, **values,
            )
            self.db.add(record)
            try:
                await self.db.commit()
            except IntegrityError:
                # A concurrent run inserted the record first; overwrite it
                await self.db.rollback()
                record = await self._get_record(tenant_id, employee_id, month, year)
                if record is None:
                    raise
                for key, value in values.items():
                    setattr(record, key, value)
                await self.db.commit()
        else:
            for key, value in values.items():
                setattr(record, key, value)
            await self.db.commit()

        await self.db.refresh(record)
        return record

    # ===========================================
    # HISTORY & REPORTING
    # ===========================================

    async def get_payroll_history(
        self,
        tenant_id: uuid.UUID,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[PayrollRecord]:
        """Payroll records of a tenant, newest period first."""
        query = select(PayrollRecord).where(PayrollRecord.tenant_id == tenant_id)
        if month:
            query = query.where(PayrollRecord.month == month)
        if year:
            query = query.where(PayrollRecord.year == year)
        query = query.order_by(
            PayrollRecord.year.desc(),
            PayrollRecord.month.desc(),
            PayrollRecord.processed_date,
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_employee_payroll_history(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID
    ) -> List[PayrollRecord]:
        """Payroll records of one employee, newest period first."""
        await self.employees.get_employee(tenant_id, employee_id)

        result = await self.db.execute(
            select(PayrollRecord)
            .where(PayrollRecord.tenant_id == tenant_id)
            .where(PayrollRecord.employee_id == employee_id)
            .order_by(PayrollRecord.year.desc(), PayrollRecord.month.desc())
        )
        return list(result.scalars().all())

    async def check_processed(self, tenant_id: uuid.UUID, month: int, year: int) -> Dict[str, Any]:
        """Whether the period has been processed, and when."""
        validate_month_year(month, year)
        processed_date = await self.period_guard.get_processed_date(tenant_id, month, year)
        return {
            "processed": processed_date is not None,
            "processed_date": processed_date,
        }

    async def get_payroll_summary(self, tenant_id: uuid.UUID, month: int, year: int) -> Dict[str, Any]:
        """Totals over the period's payroll records."""
        validate_month_year(month, year)
        result = await self.db.execute(
            select(
                func.count(PayrollRecord.id).label("employees"),
                func.coalesce(func.sum(PayrollRecord.gross_salary), 0).label("gross"),
                func.coalesce(func.sum(PayrollRecord.net_salary), 0).label("net"),
                func.coalesce(func.sum(PayrollRecord.paye), 0).label("paye"),
                func.coalesce(func.sum(PayrollRecord.nhif), 0).label("nhif"),
                func.coalesce(func.sum(PayrollRecord.nssf), 0).label("nssf"),
            ).where(
                PayrollRecord.tenant_id == tenant_id,
                PayrollRecord.month == month,
                PayrollRecord.year == year,
            )
        )
        row = result.one()

        return {
            "month": month,
            "year": year,
            "total_employees": row.employees,
            "total_gross_salary": to_money(Decimal(str(row.gross))),
            "total_net_salary": to_money(Decimal(str(row.net))),
            "total_paye": to_money(Decimal(str(row.paye))),
            "total_nhif": to_money(Decimal(str(row.nhif))),
            "total_nssf": to_money(Decimal(str(row.nssf))),
        }
