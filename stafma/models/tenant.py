"""
Stafma Payroll - Tenant Model

A tenant is the business that owns employees, payroll records, transactions
and leave requests. Registration and KYC happen outside this service; only
the fields payroll processing depends on are stored here.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, String
from sqlalchemy.orm import Mapped, mapped_column

from stafma.models.base import BaseModel


class Tenant(BaseModel):
    """Registered business."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Payroll cannot be processed for periods before this month
    registered_on: Mapped[date] = mapped_column(Date, nullable=False)

    # Settlement account used as the source of salary transfers
    settlement_account_number: Mapped[Optional[str]] = mapped_column(
        String(30), nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name})>"
