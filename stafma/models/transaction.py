"""
Stafma Payroll - Transaction Model

One row per disbursement attempt. Status moves pending -> completed or
pending -> failed exactly once and never changes afterwards.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import (
    DateTime, Enum as SQLEnum, ForeignKey, JSON, Numeric, String, Text, Uuid, func
)
from sqlalchemy.orm import Mapped, mapped_column

from stafma.models.base import BaseModel, TenantMixin


class TransactionStatus(str, Enum):
    """Disbursement status."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


class Transaction(BaseModel, TenantMixin):
    """Bank transfer of net pay or a salary advance to one employee."""

    __tablename__ = "transactions"

    # Exactly one of these is set
    payroll_record_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("payroll_records.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    salary_advance_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("salary_advances.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        SQLEnum(TransactionStatus),
        default=TransactionStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Bank detail snapshots taken when the transfer was initiated
    source_account: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    destination_account: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    transaction_reference: Mapped[str] = mapped_column(
        String(40), nullable=False, unique=True, index=True,
    )
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def to_summary(self) -> Dict[str, Any]:
        """Summary returned to callers of a payroll run."""
        return {
            "employeeId": str(self.employee_id),
            "amount": self.amount,
            "status": self.status.value,
            "reference": self.transaction_reference,
        }

    def __repr__(self) -> str:
        return f"<Transaction(reference={self.transaction_reference}, status={self.status})>"
