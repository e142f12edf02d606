"""
Stafma Payroll - Employee Service

Business logic for the employee roster of a tenant.

Employee numbers are sequential per tenant: STAFMA0001, STAFMA0002, ...
Deleting an employee removes their payroll records, transactions and leave
requests with them.
"""

import logging
import re
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.config import settings
from stafma.models.employee import (
    BANK_FIELDS, REQUIRED_BANK_FIELDS, Employee, EmployeeStatus, EmploymentType,
)
from stafma.models.leave import LeaveRequest
from stafma.models.payroll import PayrollRecord
from stafma.models.salary_advance import salary_advance_employees
from stafma.models.transaction import Transaction
from stafma.utils.error_handling import (
    DuplicateEntryException,
    EmployeeNotFoundException,
    InvalidDateRangeException,
    ValidationException,
)

logger = logging.getLogger(__name__)


# Columns an update may touch
UPDATABLE_FIELDS = {
    "first_name", "last_name", "email", "position", "department", "start_date",
    "employment_type", "employment_end_date", "probation_end_date", "status",
    "basic_salary", "housing_allowance", "transport_allowance", "medical_allowance",
    "other_allowance", "loan_deduction", "other_deduction",
}

# Bank details are set on create; later changes go through update_bank_details
CREATE_FIELDS = UPDATABLE_FIELDS | set(BANK_FIELDS)

# Defaulted to zero on create
COMPENSATION_FIELDS = (
    "housing_allowance", "transport_allowance", "medical_allowance", "other_allowance",
    "loan_deduction", "other_deduction",
)


def format_employee_number(sequence: int, prefix: Optional[str] = None) -> str:
    prefix = settings.employee_number_prefix if prefix is None else prefix
    return f"{prefix}{sequence:04d}"


def validate_employment_dates(employee: Employee) -> None:
    """End dates required by the employment type must be present and after the start date."""
    if employee.employment_type in (EmploymentType.CONTRACT, EmploymentType.ATTACHMENT):
        if employee.employment_end_date is None:
            raise ValidationException(
                f"Employment end date is required for {employee.employment_type.value} employees",
                field="employment_end_date",
            )
        if employee.employment_end_date < employee.start_date:
            raise InvalidDateRangeException(employee.start_date, employee.employment_end_date)

    if employee.employment_type == EmploymentType.PROBATION:
        if employee.probation_end_date is None:
            raise ValidationException(
                "Probation end date is required for probation employees",
                field="probation_end_date",
            )
        if employee.probation_end_date < employee.start_date:
            raise InvalidDateRangeException(employee.start_date, employee.probation_end_date)


def validate_bank_details(values: Dict[str, Any]) -> None:
    """Bank details are all-or-nothing: once any is given, the required group must be complete."""
    if not any(values.get(field) for field in BANK_FIELDS):
        return
    missing = [field for field in REQUIRED_BANK_FIELDS if not values.get(field)]
    if missing:
        raise ValidationException(
            f"Incomplete bank details, missing: {', '.join(missing)}",
            field=missing[0],
        )


class EmployeeService:
    """Service for employee operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def next_employee_number(self, tenant_id: uuid.UUID) -> str:
        """Next sequential employee number for the tenant."""
        prefix = settings.employee_number_prefix
        result = await self.db.execute(
            select(Employee.employee_number).where(Employee.tenant_id == tenant_id)
        )
        pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
        highest = 0
        for number in result.scalars().all():
            match = pattern.match(number)
            if match:
                highest = max(highest, int(match.group(1)))
        return format_employee_number(highest + 1, prefix)

    async def create_employee(
        self,
        tenant_id: uuid.UUID,
        first_name: str,
        last_name: str,
        email: str,
        position: str,
        department: str,
        start_date: date,
        basic_salary,
        employment_type: EmploymentType = EmploymentType.PERMANENT,
        **fields: Any,
    ) -> Employee:
        """
        Create an employee with the next employee number.

        ``fields`` may carry allowances, deductions, end dates and bank details.
        """
        existing = await self.db.execute(
            select(Employee.id).where(
                Employee.tenant_id == tenant_id,
                Employee.email == email.lower(),
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateEntryException("Employee", "email", email)

        unknown = set(fields) - CREATE_FIELDS
        if unknown:
            raise ValidationException(f"Unknown employee fields: {', '.join(sorted(unknown))}")

        employee = Employee(
            tenant_id=tenant_id,
            employee_number=await self.next_employee_number(tenant_id),
            first_name=first_name,
            last_name=last_name,
            email=email.lower(),
            position=position,
            department=department,
            start_date=start_date,
            employment_type=employment_type,
            basic_salary=basic_salary,
            status=fields.pop("status", None) or EmployeeStatus.ACTIVE,
        )
        for key in COMPENSATION_FIELDS:
            setattr(employee, key, Decimal("0.00"))
        for key, value in fields.items():
            if value is not None:
                setattr(employee, key, value)

        employee.compensation.validate()
        validate_employment_dates(employee)
        validate_bank_details({field: getattr(employee, field) for field in BANK_FIELDS})

        self.db.add(employee)
        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(f"Created employee {employee.employee_number} for tenant {tenant_id}")
        return employee

    async def get_employee(self, tenant_id: uuid.UUID, employee_id: uuid.UUID) -> Employee:
        """Get a tenant's employee; raises EmployeeNotFoundException."""
        result = await self.db.execute(
            select(Employee)
            .where(Employee.id == employee_id)
            .where(Employee.tenant_id == tenant_id)
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise EmployeeNotFoundException(employee_id)
        return employee

    async def list_employees(
        self,
        tenant_id: uuid.UUID,
        status: Optional[EmployeeStatus] = None,
    ) -> List[Employee]:
        """List a tenant's employees ordered by employee number."""
        query = select(Employee).where(Employee.tenant_id == tenant_id)
        if status:
            query = query.where(Employee.status == status)
        query = query.order_by(Employee.employee_number)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_active_employees(self, tenant_id: uuid.UUID) -> List[Employee]:
        return await self.list_employees(tenant_id, status=EmployeeStatus.ACTIVE)

    async def update_employee(
        self,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        updates: Dict[str, Any],
    ) -> Employee:
        """Apply a partial update; None values are ignored."""
        employee = await self.get_employee(tenant_id, employee_id)

        bank = set(updates) & set(BANK_FIELDS)
        if bank:
            raise ValidationException(
                "Bank details are replaced as a group through the bank details endpoint",
                field=sorted(bank)[0],
            )
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationException(f"Unknown employee fields: {', '.join(sorted(unknown))}")

        new_email = updates.get("email")
        if new_email and new_email.lower() != employee.email:
            clash = await self.db.execute(
                select(Employee.id).where(
                    Employee.tenant_id == tenant_id,
                    Employee.email == new_email.lower(),
                )
            )
            if clash.scalar_one_or_none() is not None:
                raise DuplicateEntryException("Employee", "email", new_email)
            updates = {**updates, "email": new_email.lower()}

        for key, value in updates.items():
            if value is not None:
                setattr(employee, key, value)

        employee.compensation.validate()
        validate_employment_dates(employee)

        await self.db.commit()
        await self.db.refresh(employee)

        return employee

    async def update_bank_details(
        self,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        details: Optional[Dict[str, Any]],
    ) -> Employee:
        """
        Replace the employee's bank details as a whole.

        Fields missing from ``details`` are cleared; ``None`` clears the group,
        after which the employee gets no transfers.
        """
        employee = await self.get_employee(tenant_id, employee_id)
        details = details or {}

        unknown = set(details) - set(BANK_FIELDS)
        if unknown:
            raise ValidationException(f"Unknown bank detail fields: {', '.join(sorted(unknown))}")

        replacement = {key: details.get(key) or None for key in BANK_FIELDS}
        validate_bank_details(replacement)
        for key, value in replacement.items():
            setattr(employee, key, value)

        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(
            f"Bank details of employee {employee.employee_number} "
            f"{'replaced' if employee.bank_details else 'cleared'}"
        )
        return employee

    async def delete_employee(self, tenant_id: uuid.UUID, employee_id: uuid.UUID) -> None:
        """Delete an employee together with their payroll history."""
        employee = await self.get_employee(tenant_id, employee_id)

        await self.db.execute(delete(Transaction).where(Transaction.employee_id == employee.id))
        await self.db.execute(delete(PayrollRecord).where(PayrollRecord.employee_id == employee.id))
        await self.db.execute(delete(LeaveRequest).where(LeaveRequest.employee_id == employee.id))
        await self.db.execute(
            delete(salary_advance_employees).where(
                salary_advance_employees.c.employee_id == employee.id
            )
        )
        await self.db.delete(employee)
        await self.db.commit()

        logger.info(f"Deleted employee {employee.employee_number} of tenant {tenant_id}")
