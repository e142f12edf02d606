"""
Stafma Payroll - Employee Model

Employees carry a fixed-shape compensation structure:

- basic salary (must be positive)
- allowances: housing, transport, medical, other (non-negative)
- employee-specific deductions: loans, other (non-negative)

Bank details are optional but kept as a group: bank, account name, account
number and branch are all set or all empty. An employee without them is still
paid on paper (a payroll record is created) but no transfer is attempted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint, Date, Enum as SQLEnum, Numeric, String, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column

from stafma.models.base import BaseModel, TenantMixin
from stafma.services.payroll_calculator import (
    Allowances, CompensationStructure, EmployeeDeductions,
)
from stafma.services.transfer_gateway import BankDetails


# Bank detail columns, replaced together
BANK_FIELDS = ("bank_name", "account_name", "account_number", "branch_name", "swift_code", "bank_code")
REQUIRED_BANK_FIELDS = ("bank_name", "account_name", "account_number", "branch_name")


class EmployeeStatus(str, Enum):
    """Employment status."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class EmploymentType(str, Enum):
    """Employment type classification."""
    PERMANENT = "permanent"
    CONTRACT = "contract"
    PROBATION = "probation"
    ATTACHMENT = "attachment"


class Employee(BaseModel, TenantMixin):
    """Employee record scoped to a tenant."""

    __tablename__ = "employees"

    employee_number: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="Sequential staff number, e.g. STAFMA0001",
    )

    # Personal Information
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Employment
    position: Mapped[str] = mapped_column(String(150), nullable=False)
    department: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    employment_type: Mapped[EmploymentType] = mapped_column(
        SQLEnum(EmploymentType),
        default=EmploymentType.PERMANENT,
        nullable=False,
    )
    employment_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    probation_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[EmployeeStatus] = mapped_column(
        SQLEnum(EmployeeStatus),
        default=EmployeeStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    # Compensation
    basic_salary: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        comment="Monthly basic salary",
    )
    housing_allowance: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )
    transport_allowance: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )
    medical_allowance: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )
    other_allowance: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )
    loan_deduction: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )
    other_deduction: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"),
    )

    # Bank details
    bank_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    account_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    branch_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    swift_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    bank_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "employee_number", name="uq_employee_tenant_number"),
        UniqueConstraint("tenant_id", "email", name="uq_employee_tenant_email"),
        CheckConstraint("basic_salary > 0", name="basic_salary_positive"),
        CheckConstraint(
            "housing_allowance >= 0 AND transport_allowance >= 0 "
            "AND medical_allowance >= 0 AND other_allowance >= 0",
            name="allowances_non_negative",
        ),
        CheckConstraint(
            "loan_deduction >= 0 AND other_deduction >= 0",
            name="deductions_non_negative",
        ),
    )

    @property
    def full_name(self) -> str:
        """Get employee's full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def compensation(self) -> CompensationStructure:
        """Compensation as the fixed-shape record the calculator consumes."""
        return CompensationStructure(
            basic=self.basic_salary,
            allowances=Allowances(
                housing=self.housing_allowance,
                transport=self.transport_allowance,
                medical=self.medical_allowance,
                other=self.other_allowance,
            ),
            deductions=EmployeeDeductions(
                loans=self.loan_deduction,
                other=self.other_deduction,
            ),
        )

    @property
    def bank_details(self) -> Optional[BankDetails]:
        """Destination account, or None unless the full bank group is on file."""
        if not all(getattr(self, field) for field in REQUIRED_BANK_FIELDS):
            return None
        return BankDetails(
            bank_name=self.bank_name,
            account_name=self.account_name,
            account_number=self.account_number,
            branch_name=self.branch_name,
            swift_code=self.swift_code,
            bank_code=self.bank_code,
        )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, number={self.employee_number}, name={self.full_name})>"
