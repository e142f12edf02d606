"""
Stafma Payroll - Salary Advance Models

A salary advance request covers one or more employees. The requested amount
is split equally across all selected employees when disbursed; the fee is
charged on the whole amount.

Status flow:
    pending -> approved | rejected
    approved -> disbursed (every transfer completed) | failed (any transfer failed)

A request stays approved when no selected employee had bank details.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Column, Date, DateTime, Enum as SQLEnum, ForeignKey, Numeric, String, Table,
    Text, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stafma.database import Base
from stafma.models.base import BaseModel, TenantMixin

if TYPE_CHECKING:
    from stafma.models.employee import Employee


class AdvanceStatus(str, Enum):
    """Salary advance request status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"
    FAILED = "failed"


class RepaymentStatus(str, Enum):
    """Repayment progress."""
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


salary_advance_employees = Table(
    "salary_advance_employees",
    Base.metadata,
    Column(
        "salary_advance_id",
        Uuid(as_uuid=True),
        ForeignKey("salary_advances.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "employee_id",
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class SalaryAdvance(BaseModel, TenantMixin):
    """Salary advance request."""

    __tablename__ = "salary_advances"

    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    fee: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    request_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[AdvanceStatus] = mapped_column(
        SQLEnum(AdvanceStatus),
        default=AdvanceStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Approval
    approved_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    approval_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Disbursement
    transaction_reference: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True,
        comment="Comma separated references of every transfer attempted",
    )
    disbursement_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Repayment
    repayment_date: Mapped[date] = mapped_column(Date, nullable=False)
    repayment_status: Mapped[RepaymentStatus] = mapped_column(
        SQLEnum(RepaymentStatus),
        default=RepaymentStatus.PENDING,
        nullable=False,
    )

    employees: Mapped[List["Employee"]] = relationship(
        "Employee",
        secondary=salary_advance_employees,
        order_by="Employee.employee_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<SalaryAdvance(id={self.id}, amount={self.amount}, status={self.status})>"
