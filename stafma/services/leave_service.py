"""
Stafma Payroll - Leave Service

Leave requests of an employee may not overlap unless one of them was
rejected. Both ends of a range count as leave days, so [10, 20] and [20, 25]
overlap while [10, 20] and [21, 25] do not.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.models.leave import LeaveRequest, LeaveStatus, LeaveType
from stafma.services.employee_service import EmployeeService
from stafma.utils.error_handling import (
    InvalidDateRangeException,
    InvalidStatusTransitionException,
    LeaveOverlapException,
    LeaveRequestNotFoundException,
)

logger = logging.getLogger(__name__)


class LeaveService:
    """Service for leave requests."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.employees = EmployeeService(db)

    async def find_overlapping(
        self,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> Optional[LeaveRequest]:
        """First non-rejected request of the employee overlapping [start_date, end_date]."""
        result = await self.db.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.tenant_id == tenant_id,
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status != LeaveStatus.REJECTED,
                LeaveRequest.start_date <= end_date,
                LeaveRequest.end_date >= start_date,
            )
            .order_by(LeaveRequest.start_date)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def request_leave(
        self,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> LeaveRequest:
        """Create a pending leave request."""
        if start_date > end_date:
            raise InvalidDateRangeException(start_date, end_date)

        await self.employees.get_employee(tenant_id, employee_id)

        existing = await self.find_overlapping(tenant_id, employee_id, start_date, end_date)
        if existing is not None:
            raise LeaveOverlapException(existing.id, existing.start_date, existing.end_date)

        leave = LeaveRequest(
            tenant_id=tenant_id,
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=LeaveStatus.PENDING,
        )
        self.db.add(leave)
        await self.db.commit()
        await self.db.refresh(leave)

        return leave

    async def get_leave(self, tenant_id: uuid.UUID, leave_id: uuid.UUID) -> LeaveRequest:
        result = await self.db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.id == leave_id)
            .where(LeaveRequest.tenant_id == tenant_id)
        )
        leave = result.scalar_one_or_none()
        if leave is None:
            raise LeaveRequestNotFoundException(leave_id)
        return leave

    async def update_status(
        self,
        tenant_id: uuid.UUID,
        leave_id: uuid.UUID,
        status: LeaveStatus,
        user_id: Optional[str] = None,
        comments: Optional[str] = None,
    ) -> LeaveRequest:
        """Approve or reject a pending request."""
        leave = await self.get_leave(tenant_id, leave_id)

        if leave.status != LeaveStatus.PENDING or status == LeaveStatus.PENDING:
            raise InvalidStatusTransitionException("Leave request", leave.status.value, status.value)

        leave.status = status
        leave.comments = comments
        if status == LeaveStatus.APPROVED:
            leave.approved_by = user_id
            leave.approval_date = datetime.now(timezone.utc)

        await self.db.commit()
        await self.db.refresh(leave)

        logger.info(f"Leave request {leave.id} {status.value}")
        return leave

    async def list_for_employee(self, tenant_id: uuid.UUID, employee_id: uuid.UUID) -> List[LeaveRequest]:
        result = await self.db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.tenant_id == tenant_id)
            .where(LeaveRequest.employee_id == employee_id)
            .order_by(LeaveRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_tenant(
        self,
        tenant_id: uuid.UUID,
        status: Optional[LeaveStatus] = None,
    ) -> List[LeaveRequest]:
        query = select(LeaveRequest).where(LeaveRequest.tenant_id == tenant_id)
        if status:
            query = query.where(LeaveRequest.status == status)
        query = query.order_by(LeaveRequest.created_at.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())
