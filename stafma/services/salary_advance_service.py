"""
Stafma Payroll - Salary Advance Service

Salary advance requests:

- Request: one or more employees, a positive amount and a reason.
  fee = amount * 5%, total = amount + fee, repayment due 30 days later.
- Approval: the AMOUNT (not the total) is split equally by headcount across
  all selected employees, and each employee with bank details is paid their
  share. Employees without bank details are skipped, not failed.
- Outcome: disbursed when every attempted transfer completed, failed when
  any did not. With no transfer attempted the request stays approved.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.config import settings
from stafma.models.employee import Employee
from stafma.models.salary_advance import AdvanceStatus, SalaryAdvance
from stafma.models.transaction import TransactionStatus
from stafma.services.deduction_policy import CENT, ZERO, to_money
from stafma.services.disbursement_service import DisbursementRequest, DisbursementService
from stafma.services.transfer_gateway import BankDetails
from stafma.utils.error_handling import (
    AdvanceNotFoundException,
    EmployeeNotFoundException,
    InvalidAmountException,
    InvalidStatusTransitionException,
    NoEmployeesSelectedException,
    ValidationException,
)

logger = logging.getLogger(__name__)


def calculate_advance_fee(amount: Decimal, rate: Optional[Decimal] = None) -> Tuple[Decimal, Decimal]:
    """Return (fee, total_amount) for an advance amount."""
    rate = Decimal(settings.advance_fee_rate) if rate is None else Decimal(rate)
    amount = to_money(amount)
    fee = to_money(amount * rate)
    return fee, amount + fee


def split_advance_equally(amount: Decimal, employee_count: int) -> List[Decimal]:
    """
    Split an amount into ``employee_count`` equal shares.

    Shares are rounded down to cents and the leftover cents go one each to
    the first shares, so the shares always add up to the amount.
    """
    if employee_count < 1:
        raise NoEmployeesSelectedException()

    amount = to_money(amount)
    share = (amount / employee_count).quantize(CENT, rounding=ROUND_DOWN)
    leftover_cents = int((amount - share * employee_count) / CENT)
    return [share + (CENT if i < leftover_cents else ZERO) for i in range(employee_count)]


def advance_source_account() -> BankDetails:
    """Account advances are paid from."""
    return BankDetails(
        bank_name=settings.disbursement_bank_name,
        account_name=settings.advance_source_account_name,
        account_number=settings.advance_source_account_number,
    )


class SalaryAdvanceService:
    """Service for salary advance requests."""

    def __init__(self, db: AsyncSession, disbursement: Optional[DisbursementService] = None):
        self.db = db
        self.disbursement = disbursement or DisbursementService(db)

    # ===========================================
    # REQUESTS
    # ===========================================

    async def request_advance(
        self,
        tenant_id: uuid.UUID,
        employee_ids: Sequence[uuid.UUID],
        amount,
        reason: Optional[str],
        request_date: Optional[datetime] = None,
    ) -> SalaryAdvance:
        """Create a pending advance request; validation happens before anything is stored."""
        if not employee_ids:
            raise NoEmployeesSelectedException()

        try:
            amount = Decimal(str(amount))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmountException(amount)
        if not amount.is_finite() or to_money(amount) <= ZERO:
            raise InvalidAmountException(amount)

        if not reason or not reason.strip():
            raise ValidationException(
                "Reason is required", field="reason", status_code=400,
            )

        employees = await self._get_employees(tenant_id, employee_ids)
        fee, total_amount = calculate_advance_fee(amount)
        now = datetime.now(timezone.utc)

        advance = SalaryAdvance(
            tenant_id=tenant_id,
            amount=to_money(amount),
            fee=fee,
            total_amount=total_amount,
            reason=reason.strip(),
            request_date=request_date or now,
            status=AdvanceStatus.PENDING,
            repayment_date=now.date() + timedelta(days=settings.advance_repayment_days),
            employees=employees,
        )
        self.db.add(advance)
        await self.db.commit()
        await self.db.refresh(advance)

        logger.info(
            f"Salary advance {advance.id} of {advance.amount} requested for "
            f"{len(employees)} employee(s) of tenant {tenant_id}"
        )
        return advance

    async def _get_employees(
        self, tenant_id: uuid.UUID, employee_ids: Sequence[uuid.UUID]
    ) -> List[Employee]:
        """Resolve the selection in the given order; every ID must belong to the tenant."""
        unique_ids = list(dict.fromkeys(employee_ids))
        result = await self.db.execute(
            select(Employee).where(
                Employee.tenant_id == tenant_id,
                Employee.id.in_(unique_ids),
            )
        )
        found = {employee.id: employee for employee in result.scalars().all()}
        for employee_id in unique_ids:
            if employee_id not in found:
                raise EmployeeNotFoundException(employee_id)
        return [found[employee_id] for employee_id in unique_ids]

    async def get_advance(self, tenant_id: uuid.UUID, advance_id: uuid.UUID) -> SalaryAdvance:
        result = await self.db.execute(
            select(SalaryAdvance)
            .where(SalaryAdvance.id == advance_id)
            .where(SalaryAdvance.tenant_id == tenant_id)
        )
        advance = result.scalar_one_or_none()
        if advance is None:
            raise AdvanceNotFoundException(advance_id)
        return advance

    async def list_advances(
        self,
        tenant_id: uuid.UUID,
        status: Optional[AdvanceStatus] = None,
    ) -> List[SalaryAdvance]:
        """A tenant's advance requests, newest first."""
        query = select(SalaryAdvance).where(SalaryAdvance.tenant_id == tenant_id)
        if status:
            query = query.where(SalaryAdvance.status == status)
        query = query.order_by(SalaryAdvance.request_date.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ===========================================
    # DECISIONS
    # ===========================================

    async def approve_advance(
        self,
        tenant_id: uuid.UUID,
        advance_id: uuid.UUID,
        approved_by: Optional[str] = None,
        comments: Optional[str] = None,
    ) -> SalaryAdvance:
        """Approve a pending request and disburse it."""
        advance = await self.get_advance(tenant_id, advance_id)
        self._ensure_pending(advance, AdvanceStatus.APPROVED)

        # Employees deleted since the request no longer take a share
        employees = sorted(advance.employees, key=lambda e: e.employee_number)
        shares = split_advance_equally(advance.amount, len(employees)) if employees else []
        source = advance_source_account()

        advance.status = AdvanceStatus.APPROVED
        advance.approved_by = approved_by
        advance.approval_date = datetime.now(timezone.utc)
        if comments is not None:
            advance.comments = comments
        await self.db.commit()

        requests = []
        for employee, share in zip(employees, shares):
            destination = employee.bank_details
            if destination is None:
                logger.warning(
                    f"Skipping advance share for {employee.full_name}: no bank details"
                )
                continue
            requests.append(DisbursementRequest(
                tenant_id=tenant_id,
                employee_id=employee.id,
                amount=share,
                source=source,
                destination=destination,
                salary_advance_id=advance.id,
            ))

        transactions = await self.disbursement.disburse_many(requests)

        if transactions:
            all_completed = all(t.status == TransactionStatus.COMPLETED for t in transactions)
            advance.status = AdvanceStatus.DISBURSED if all_completed else AdvanceStatus.FAILED
            advance.transaction_reference = ",".join(t.transaction_reference for t in transactions)
            advance.disbursement_date = datetime.now(timezone.utc)
            await self.db.commit()
        else:
            logger.warning(f"Salary advance {advance.id} approved with no payable employee")

        await self.db.refresh(advance)
        logger.info(f"Salary advance {advance.id} is {advance.status.value}")
        return advance

    async def reject_advance(
        self,
        tenant_id: uuid.UUID,
        advance_id: uuid.UUID,
        rejected_by: Optional[str] = None,
        comments: Optional[str] = None,
    ) -> SalaryAdvance:
        """Reject a pending request."""
        advance = await self.get_advance(tenant_id, advance_id)
        self._ensure_pending(advance, AdvanceStatus.REJECTED)

        advance.status = AdvanceStatus.REJECTED
        advance.approved_by = rejected_by
        advance.approval_date = datetime.now(timezone.utc)
        if comments is not None:
            advance.comments = comments
        await self.db.commit()
        await self.db.refresh(advance)

        return advance

    async def update_status(
        self,
        tenant_id: uuid.UUID,
        advance_id: uuid.UUID,
        status: AdvanceStatus,
        user_id: Optional[str] = None,
        comments: Optional[str] = None,
    ) -> SalaryAdvance:
        if status == AdvanceStatus.APPROVED:
            return await self.approve_advance(tenant_id, advance_id, user_id, comments)
        if status == AdvanceStatus.REJECTED:
            return await self.reject_advance(tenant_id, advance_id, user_id, comments)

        advance = await self.get_advance(tenant_id, advance_id)
        raise InvalidStatusTransitionException("Salary advance", advance.status.value, status.value)

    @staticmethod
    def _ensure_pending(advance: SalaryAdvance, requested: AdvanceStatus) -> None:
        if advance.status != AdvanceStatus.PENDING:
            raise InvalidStatusTransitionException(
                "Salary advance", advance.status.value, requested.value,
            )
