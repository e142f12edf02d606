"""
Stafma Payroll - Payroll Schemas

Pydantic schemas for payroll runs, payslip records, transactions and salary
advances.

Payroll records and transaction summaries keep the camelCase field layout
payslip rendering and the dashboard consume (basicSalary, grossSalary,
deductions.totalDeductions, ...).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stafma.models.payroll import PayrollRecord
from stafma.models.salary_advance import AdvanceStatus, RepaymentStatus
from stafma.models.transaction import TransactionStatus
from stafma.schemas.employee import EmployeeSummary


# ===========================================
# PAYROLL RUN SCHEMAS
# ===========================================

class PayrollPeriodRequest(BaseModel):
    """Month and year of a payroll period."""
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)


class ProcessEmployeeRequest(PayrollPeriodRequest):
    """Recompute one employee's payroll for a period."""
    employee_id: UUID


class TransactionSummary(BaseModel):
    """One disbursement attempt of a payroll run."""
    model_config = ConfigDict(populate_by_name=True)

    employee_id: UUID = Field(..., alias="employeeId")
    amount: Decimal
    status: TransactionStatus
    reference: str


class PayrollRunResponse(BaseModel):
    """Payroll run outcome; answered even when some employees failed."""
    message: str
    count: int
    warnings: List[str] = []
    transactions: List[TransactionSummary] = []


# ===========================================
# PAYROLL RECORD SCHEMAS
# ===========================================

class PayslipDeductions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    paye: Decimal
    nhif: Decimal
    nssf: Decimal
    other: Decimal
    total_deductions: Decimal = Field(..., alias="totalDeductions")


class PayrollRecordResponse(BaseModel):
    """Payroll record in payslip layout."""
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    employee_id: UUID = Field(..., alias="employeeId")
    month: int
    year: int
    basic_salary: Decimal = Field(..., alias="basicSalary")
    allowances: Decimal
    gross_salary: Decimal = Field(..., alias="grossSalary")
    deductions: PayslipDeductions
    net_salary: Decimal = Field(..., alias="netSalary")
    processed_date: datetime = Field(..., alias="processedDate")
    source: str

    @classmethod
    def from_record(cls, record: PayrollRecord) -> "PayrollRecordResponse":
        return cls.model_validate({
            "id": record.id,
            "source": record.source.value,
            **record.to_payslip_dict(),
        })


class PeriodStatusResponse(BaseModel):
    """Whether a period has been processed."""
    month: int
    year: int
    processed: bool
    processed_date: Optional[datetime] = None


class PayrollSummaryResponse(BaseModel):
    """Totals over a period's payroll records."""
    month: int
    year: int
    total_employees: int
    total_gross_salary: Decimal
    total_net_salary: Decimal
    total_paye: Decimal
    total_nhif: Decimal
    total_nssf: Decimal


# ===========================================
# TRANSACTION SCHEMAS
# ===========================================

class TransactionResponse(BaseModel):
    """Transaction status lookup."""
    id: UUID
    transaction_reference: str
    status: TransactionStatus
    amount: Decimal
    employee_id: UUID
    payroll_record_id: Optional[UUID] = None
    salary_advance_id: Optional[UUID] = None
    destination_account: dict
    transaction_date: datetime
    error_message: Optional[str] = None

    class Config:
        from_attributes = True


# ===========================================
# SALARY ADVANCE SCHEMAS
# ===========================================

class AdvanceRequestCreate(BaseModel):
    """Salary advance request."""
    employee_ids: List[UUID]
    amount: Decimal
    reason: Optional[str] = None
    request_date: Optional[datetime] = None

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class AdvanceStatusUpdate(BaseModel):
    """Approve or reject an advance request."""
    status: Literal["approved", "rejected"]
    comments: Optional[str] = None


class AdvanceResponse(BaseModel):
    """Salary advance request response."""
    id: UUID
    amount: Decimal
    fee: Decimal
    total_amount: Decimal
    reason: str
    request_date: datetime
    status: AdvanceStatus
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    comments: Optional[str] = None
    transaction_reference: Optional[str] = None
    disbursement_date: Optional[datetime] = None
    repayment_date: date
    repayment_status: RepaymentStatus
    employees: List[EmployeeSummary] = []
    created_at: datetime

    class Config:
        from_attributes = True
