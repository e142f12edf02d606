"""
Stafma Payroll - Leave Schemas
"""

from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from stafma.models.leave import LeaveStatus, LeaveType
from stafma.schemas.employee import EmployeeSummary


class LeaveRequestCreate(BaseModel):
    """Leave request; both dates are leave days."""
    employee_id: UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(..., min_length=1)


class LeaveStatusUpdate(BaseModel):
    status: Literal["approved", "rejected"]
    comments: Optional[str] = None


class LeaveRequestResponse(BaseModel):
    """Leave request response."""
    id: UUID
    employee_id: UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    comments: Optional[str] = None
    created_at: datetime
    employee: Optional[EmployeeSummary] = None

    class Config:
        from_attributes = True
