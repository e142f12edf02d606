"""
Stafma Payroll - Employee Service Tests
"""

import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select

from stafma.models.employee import EmployeeStatus, EmploymentType
from stafma.models.payroll import PayrollRecord
from stafma.services.employee_service import EmployeeService, format_employee_number
from stafma.services.payroll_service import PayrollService
from stafma.utils.error_handling import (
    DuplicateEntryException,
    EmployeeNotFoundException,
    InvalidCompensationException,
    InvalidDateRangeException,
    ValidationException,
)


class TestEmployeeNumbers:

    def test_format(self):
        assert format_employee_number(1, "STAFMA") == "STAFMA0001"
        assert format_employee_number(12345, "STAFMA") == "STAFMA12345"

    @pytest.mark.asyncio
    async def test_sequential_per_tenant(self, db_session, test_tenant, other_tenant, make_employee):
        first = await make_employee(test_tenant, first_name="Amina")
        second = await make_employee(test_tenant, first_name="Brian")
        elsewhere = await make_employee(other_tenant, first_name="Chao")

        assert first.employee_number == "STAFMA0001"
        assert second.employee_number == "STAFMA0002"
        assert elsewhere.employee_number == "STAFMA0001"


class TestCreateEmployee:

    @pytest.mark.asyncio
    async def test_defaults(self, db_session, test_tenant, make_employee):
        employee = await make_employee(test_tenant, with_bank=False, email="Jane.Doe@Example.com")

        assert employee.status == EmployeeStatus.ACTIVE
        assert employee.employment_type == EmploymentType.PERMANENT
        assert employee.email == "jane.doe@example.com"
        assert employee.housing_allowance == Decimal("0.00")
        assert employee.bank_details is None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, db_session, test_tenant, make_employee):
        await make_employee(test_tenant, email="jane@example.com")

        with pytest.raises(DuplicateEntryException):
            await make_employee(test_tenant, first_name="Other", email="JANE@example.com")

    @pytest.mark.asyncio
    async def test_contract_needs_end_date(self, db_session, test_tenant, make_employee):
        with pytest.raises(ValidationException) as exc_info:
            await make_employee(test_tenant, employment_type=EmploymentType.CONTRACT)

        assert exc_info.value.field == "employment_end_date"

    @pytest.mark.asyncio
    async def test_probation_end_before_start(self, db_session, test_tenant, make_employee):
        with pytest.raises(InvalidDateRangeException):
            await make_employee(
                test_tenant,
                employment_type=EmploymentType.PROBATION,
                probation_end_date=date(2023, 1, 1),
            )

    @pytest.mark.asyncio
    async def test_negative_allowance(self, db_session, test_tenant, make_employee):
        with pytest.raises(InvalidCompensationException):
            await make_employee(test_tenant, transport_allowance=Decimal("-10"))


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, test_tenant, make_employee):
        employee = await make_employee(test_tenant)
        service = EmployeeService(db_session)

        updated = await service.update_employee(
            test_tenant.id, employee.id, {"position": "Finance Manager", "status": EmployeeStatus.INACTIVE},
        )

        assert updated.position == "Finance Manager"
        assert updated.status == EmployeeStatus.INACTIVE
        assert updated.first_name == "Jane"

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_field(self, db_session, test_tenant, make_employee):
        employee = await make_employee(test_tenant)
        service = EmployeeService(db_session)

        with pytest.raises(ValidationException):
            await service.update_employee(test_tenant.id, employee.id, {"employee_number": "X1"})

    @pytest.mark.asyncio
    async def test_delete_removes_payroll_history(
        self, db_session, test_tenant, make_employee
    ):
        employee = await make_employee(test_tenant)
        await PayrollService(db_session).process_single_employee(test_tenant.id, employee.id, 6, 2023)
        service = EmployeeService(db_session)

        await service.delete_employee(test_tenant.id, employee.id)

        with pytest.raises(EmployeeNotFoundException):
            await service.get_employee(test_tenant.id, employee.id)
        result = await db_session.execute(select(func.count()).select_from(PayrollRecord))
        assert result.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_delete(self, db_session, test_tenant, other_tenant, make_employee):
        employee = await make_employee(test_tenant)

        with pytest.raises(EmployeeNotFoundException):
            await EmployeeService(db_session).delete_employee(other_tenant.id, employee.id)


class TestBankDetails:
    """Bank details are stored and replaced as a group."""

    @pytest.mark.asyncio
    async def test_account_number_alone_rejected(self, db_session, test_tenant, make_employee):
        with pytest.raises(ValidationException) as exc_info:
            await make_employee(test_tenant, with_bank=False, account_number="0123")

        assert exc_info.value.field == "bank_name"
        assert "account_name" in exc_info.value.message
        assert await EmployeeService(db_session).list_employees(test_tenant.id) == []

    @pytest.mark.asyncio
    async def test_full_group_is_a_destination(self, db_session, test_tenant, make_employee):
        employee = await make_employee(test_tenant)

        destination = employee.bank_details

        assert destination.bank_name == "Equity Bank"
        assert destination.account_name == "Jane Wanjiru"
        assert destination.branch_name == "Westlands"

    @pytest.mark.asyncio
    async def test_replace_group(self, db_session, test_tenant, make_employee):
        employee = await make_employee(test_tenant)
        service = EmployeeService(db_session)

        updated = await service.update_bank_details(test_tenant.id, employee.id, {
            "bank_name": "KCB",
            "account_name": "Jane W. Wanjiru",
            "account_number": "1100223344",
            "branch_name": "Moi Avenue",
        })

        assert updated.bank_details.bank_name == "KCB"
        assert updated.account_number == "1100223344"
        # Fields left out of the replacement are cleared
        assert updated.bank_code is None

    @pytest.mark.asyncio
    async def test_incomplete_replacement_keeps_old_details(
        self, db_session, test_tenant, make_employee
    ):
        employee = await make_employee(test_tenant)
        service = EmployeeService(db_session)

        with pytest.raises(ValidationException) as exc_info:
            await service.update_bank_details(
                test_tenant.id, employee.id, {"account_number": "1100223344"},
            )

        assert exc_info.value.field == "bank_name"
        assert employee.account_number == "0123456789"
        assert employee.bank_details is not None

    @pytest.mark.asyncio
    async def test_clear_group(self, db_session, test_tenant, make_employee):
        employee = await make_employee(test_tenant)
        service = EmployeeService(db_session)

        cleared = await service.update_bank_details(test_tenant.id, employee.id, None)

        assert cleared.account_number is None
        assert cleared.bank_name is None
        assert cleared.bank_details is None

    @pytest.mark.asyncio
    async def test_partial_update_cannot_touch_bank_fields(
        self, db_session, test_tenant, make_employee
    ):
        employee = await make_employee(test_tenant)
        service = EmployeeService(db_session)

        with pytest.raises(ValidationException) as exc_info:
            await service.update_employee(test_tenant.id, employee.id, {"account_number": None})

        assert exc_info.value.field == "account_number"
        assert employee.account_number == "0123456789"
