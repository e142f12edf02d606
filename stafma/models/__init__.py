"""
Stafma Payroll - Database Models

All SQLAlchemy models are imported here for easy access
and to register them with the metadata.
"""

from stafma.models.base import BaseModel, TimestampMixin, TenantMixin
from stafma.models.tenant import Tenant
from stafma.models.employee import Employee, EmployeeStatus, EmploymentType
from stafma.models.payroll import PayrollPeriod, PayrollRecord, PayrollRecordSource
from stafma.models.transaction import Transaction, TransactionStatus
from stafma.models.salary_advance import (
    SalaryAdvance,
    AdvanceStatus,
    RepaymentStatus,
    salary_advance_employees,
)
from stafma.models.leave import LeaveRequest, LeaveType, LeaveStatus

__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "TenantMixin",
    # Tenant
    "Tenant",
    # Employee
    "Employee",
    "EmployeeStatus",
    "EmploymentType",
    # Payroll
    "PayrollPeriod",
    "PayrollRecord",
    "PayrollRecordSource",
    # Disbursement
    "Transaction",
    "TransactionStatus",
    # Salary advances
    "SalaryAdvance",
    "AdvanceStatus",
    "RepaymentStatus",
    "salary_advance_employees",
    # Leave
    "LeaveRequest",
    "LeaveType",
    "LeaveStatus",
]
