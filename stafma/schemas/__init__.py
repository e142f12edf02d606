"""
Stafma Payroll - Schemas Package

Pydantic schemas for request/response validation.
"""

from stafma.schemas.employee import (
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeResponse,
    EmployeeSummary,
    MessageResponse,
)
from stafma.schemas.payroll import (
    PayrollPeriodRequest,
    ProcessEmployeeRequest,
    TransactionSummary,
    PayrollRunResponse,
    PayrollRecordResponse,
    PeriodStatusResponse,
    PayrollSummaryResponse,
    TransactionResponse,
    AdvanceRequestCreate,
    AdvanceStatusUpdate,
    AdvanceResponse,
)
from stafma.schemas.leave import (
    LeaveRequestCreate,
    LeaveStatusUpdate,
    LeaveRequestResponse,
)

__all__ = [
    # Employees
    "EmployeeCreate",
    "EmployeeUpdate",
    "EmployeeResponse",
    "EmployeeSummary",
    "MessageResponse",
    # Payroll
    "PayrollPeriodRequest",
    "ProcessEmployeeRequest",
    "TransactionSummary",
    "PayrollRunResponse",
    "PayrollRecordResponse",
    "PeriodStatusResponse",
    "PayrollSummaryResponse",
    "TransactionResponse",
    # Salary advances
    "AdvanceRequestCreate",
    "AdvanceStatusUpdate",
    "AdvanceResponse",
    # Leave
    "LeaveRequestCreate",
    "LeaveStatusUpdate",
    "LeaveRequestResponse",
]
