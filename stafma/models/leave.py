"""
Stafma Payroll - Leave Request Model
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint, Date, DateTime, Enum as SQLEnum, ForeignKey, String, Text, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stafma.models.base import BaseModel, TenantMixin

if TYPE_CHECKING:
    from stafma.models.employee import Employee


class LeaveType(str, Enum):
    """Types of leave."""
    ANNUAL = "annual"
    SICK = "sick"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    STUDY = "study"
    UNPAID = "unpaid"
    OTHER = "other"


class LeaveStatus(str, Enum):
    """Leave request status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveRequest(BaseModel, TenantMixin):
    """
    Leave request for one employee.

    Non-rejected requests of the same employee never overlap; both ends of
    the date range are inclusive.
    """

    __tablename__ = "leave_requests"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type: Mapped[LeaveType] = mapped_column(SQLEnum(LeaveType), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[LeaveStatus] = mapped_column(
        SQLEnum(LeaveStatus),
        default=LeaveStatus.PENDING,
        nullable=False,
        index=True,
    )
    approved_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    approval_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    employee: Mapped["Employee"] = relationship("Employee", lazy="selectin")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="leave_date_range"),
    )

    def __repr__(self) -> str:
        return f"<LeaveRequest(employee_id={self.employee_id}, type={self.leave_type}, status={self.status})>"
