"""
Stafma Payroll - Employee Schemas

Pydantic schemas for employee requests and responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from stafma.models.employee import (
    BANK_FIELDS, REQUIRED_BANK_FIELDS, EmployeeStatus, EmploymentType,
)


# ===========================================
# EMPLOYEE SCHEMAS
# ===========================================

class BankDetailsFields(BaseModel):
    """Bank account the employee is paid into."""
    bank_name: Optional[str] = Field(None, max_length=100)
    account_name: Optional[str] = Field(None, max_length=200)
    account_number: Optional[str] = Field(None, max_length=30)
    branch_name: Optional[str] = Field(None, max_length=100)
    swift_code: Optional[str] = Field(None, max_length=20)
    bank_code: Optional[str] = Field(None, max_length=20)


class BankDetailsUpdate(BaseModel):
    """Replacement bank details; the four account fields are required together."""
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_name: str = Field(..., min_length=1, max_length=200)
    account_number: str = Field(..., min_length=1, max_length=30)
    branch_name: str = Field(..., min_length=1, max_length=100)
    swift_code: Optional[str] = Field(None, max_length=20)
    bank_code: Optional[str] = Field(None, max_length=20)


class EmployeeCreate(BankDetailsFields):
    """Create employee request. The employee number is assigned by the server."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    position: str = Field(..., min_length=1, max_length=150)
    department: str = Field(..., min_length=1, max_length=100)
    start_date: date
    employment_type: EmploymentType = EmploymentType.PERMANENT
    employment_end_date: Optional[date] = None
    probation_end_date: Optional[date] = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE

    # Pay structure
    basic_salary: Decimal = Field(..., gt=0, decimal_places=2)
    housing_allowance: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    transport_allowance: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    medical_allowance: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    other_allowance: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    loan_deduction: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    other_deduction: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)

    @model_validator(mode='after')
    def validate_bank_group(self):
        if any(getattr(self, field) for field in BANK_FIELDS):
            missing = [field for field in REQUIRED_BANK_FIELDS if not getattr(self, field)]
            if missing:
                raise ValueError(f"Incomplete bank details, missing: {', '.join(missing)}")
        return self


class EmployeeUpdate(BaseModel):
    """Update employee request; omitted fields are left unchanged. Bank details have their own endpoint."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    position: Optional[str] = None
    department: Optional[str] = None
    start_date: Optional[date] = None
    employment_type: Optional[EmploymentType] = None
    employment_end_date: Optional[date] = None
    probation_end_date: Optional[date] = None
    status: Optional[EmployeeStatus] = None

    basic_salary: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    housing_allowance: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    transport_allowance: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    medical_allowance: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    other_allowance: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    loan_deduction: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    other_deduction: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class EmployeeResponse(BankDetailsFields):
    """Employee response."""
    id: UUID
    tenant_id: UUID
    employee_number: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    position: str
    department: str
    start_date: date
    employment_type: EmploymentType
    employment_end_date: Optional[date] = None
    probation_end_date: Optional[date] = None
    status: EmployeeStatus

    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    medical_allowance: Decimal
    other_allowance: Decimal
    loan_deduction: Decimal
    other_deduction: Decimal

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EmployeeSummary(BaseModel):
    """Minimal employee info for nested responses."""
    id: UUID
    employee_number: str
    full_name: str
    position: str
    department: str

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
