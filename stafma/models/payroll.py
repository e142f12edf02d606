"""
Stafma Payroll - Payroll Models

- PayrollPeriod: the processed marker for a (tenant, month, year). The unique
  constraint on it is what makes a full payroll run exactly-once per period.
- PayrollRecord: one computed payroll line per (tenant, employee, month, year).
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict

from sqlalchemy import (
    CheckConstraint, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric,
    UniqueConstraint, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stafma.models.base import BaseModel, TenantMixin

if TYPE_CHECKING:
    from stafma.models.employee import Employee


class PayrollRecordSource(str, Enum):
    """Which operation produced a payroll record."""
    PAYROLL_RUN = "payroll_run"
    SINGLE_EMPLOYEE = "single_employee"


class PayrollPeriod(BaseModel, TenantMixin):
    """Marks a tenant's payroll period as processed."""

    __tablename__ = "payroll_periods"

    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    processed_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    processed_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "month", "year", name="uq_payroll_period_tenant_month_year"),
        CheckConstraint("month >= 1 AND month <= 12", name="period_month_range"),
    )

    def __repr__(self) -> str:
        return f"<PayrollPeriod(tenant_id={self.tenant_id}, {self.month}/{self.year})>"


class PayrollRecord(BaseModel, TenantMixin):
    """
    Computed payroll line for one employee and period.

    Immutable once created, except through the single-employee correction
    path which upserts on (tenant, employee, month, year).
    """

    __tablename__ = "payroll_records"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Earnings
    basic_salary: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    allowances: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False,
        comment="Sum of all allowance categories",
    )
    gross_salary: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)

    # Deductions
    paye: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    nhif: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    nssf: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    other_deductions: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)

    # May be negative when deductions exceed gross
    net_salary: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)

    processed_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source: Mapped[PayrollRecordSource] = mapped_column(
        SQLEnum(PayrollRecordSource),
        default=PayrollRecordSource.PAYROLL_RUN,
        nullable=False,
    )

    employee: Mapped["Employee"] = relationship("Employee", lazy="selectin")

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "employee_id", "month", "year",
            name="uq_payroll_record_tenant_employee_period",
        ),
        CheckConstraint("month >= 1 AND month <= 12", name="record_month_range"),
    )

    def to_payslip_dict(self) -> Dict[str, Any]:
        """Field layout consumed by payslip rendering."""
        return {
            "employeeId": str(self.employee_id),
            "month": self.month,
            "year": self.year,
            "basicSalary": self.basic_salary,
            "allowances": self.allowances,
            "grossSalary": self.gross_salary,
            "deductions": {
                "paye": self.paye,
                "nhif": self.nhif,
                "nssf": self.nssf,
                "other": self.other_deductions,
                "totalDeductions": self.total_deductions,
            },
            "netSalary": self.net_salary,
            "processedDate": self.processed_date,
        }

    def __repr__(self) -> str:
        return f"<PayrollRecord(employee_id={self.employee_id}, {self.month}/{self.year}, net={self.net_salary})>"
