"""
Stafma Payroll - Salary Advance Tests
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stafma.models.salary_advance import AdvanceStatus, RepaymentStatus, SalaryAdvance
from stafma.services.disbursement_service import DisbursementService
from stafma.services.employee_service import EmployeeService
from stafma.services.salary_advance_service import (
    SalaryAdvanceService,
    calculate_advance_fee,
    split_advance_equally,
)
from stafma.utils.error_handling import (
    EmployeeNotFoundException,
    InvalidAmountException,
    InvalidStatusTransitionException,
    NoEmployeesSelectedException,
    ValidationException,
)


def build_service(db_session, gateway):
    return SalaryAdvanceService(
        db_session, disbursement=DisbursementService(db_session, gateway=gateway),
    )


class TestAdvanceArithmetic:

    def test_fee_is_five_percent(self):
        fee, total = calculate_advance_fee(Decimal("1000"))

        assert fee == Decimal("50.00")
        assert total == Decimal("1050.00")

    def test_fee_rounds_to_cents(self):
        fee, total = calculate_advance_fee(Decimal("333.33"))

        assert fee == Decimal("16.67")
        assert total == Decimal("350.00")

    def test_even_split(self):
        assert split_advance_equally(Decimal("1000"), 2) == [Decimal("500.00"), Decimal("500.00")]

    def test_uneven_split_keeps_every_cent(self):
        shares = split_advance_equally(Decimal("100"), 3)

        assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
        assert sum(shares) == Decimal("100.00")

    def test_split_without_employees(self):
        with pytest.raises(NoEmployeesSelectedException):
            split_advance_equally(Decimal("100"), 0)


class TestRequestAdvance:

    @pytest.mark.asyncio
    async def test_pending_request(self, db_session, test_tenant, make_employee, gateway):
        employee = await make_employee(test_tenant)
        service = build_service(db_session, gateway)

        advance = await service.request_advance(
            test_tenant.id, [employee.id], Decimal("1000"), "School fees",
        )

        assert advance.status == AdvanceStatus.PENDING
        assert advance.fee == Decimal("50.00")
        assert advance.total_amount == Decimal("1050.00")
        assert advance.repayment_status == RepaymentStatus.PENDING
        assert abs((advance.repayment_date - date.today()) - timedelta(days=30)) <= timedelta(days=1)
        assert [e.id for e in advance.employees] == [employee.id]
        assert gateway.attempts == []

    @pytest.mark.asyncio
    async def test_no_employees(self, db_session, test_tenant, gateway):
        service = build_service(db_session, gateway)

        with pytest.raises(NoEmployeesSelectedException):
            await service.request_advance(test_tenant.id, [], Decimal("1000"), "Rent")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-50", "abc"])
    async def test_invalid_amount(self, db_session, test_tenant, make_employee, gateway, amount):
        employee = await make_employee(test_tenant)
        service = build_service(db_session, gateway)

        with pytest.raises(InvalidAmountException) as exc_info:
            await service.request_advance(test_tenant.id, [employee.id], amount, "Rent")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", [None, "", "   "])
    async def test_reason_required(self, db_session, test_tenant, make_employee, gateway, reason):
        employee = await make_employee(test_tenant)
        service = build_service(db_session, gateway)

        with pytest.raises(ValidationException) as exc_info:
            await service.request_advance(test_tenant.id, [employee.id], Decimal("1000"), reason)

        assert exc_info.value.message == "Reason is required"
        assert exc_info.value.status_code == 400
        assert await service.list_advances(test_tenant.id) == []

    @pytest.mark.asyncio
    async def test_employee_of_other_tenant(
        self, db_session, test_tenant, other_tenant, make_employee, gateway
    ):
        outsider = await make_employee(other_tenant)
        service = build_service(db_session, gateway)

        with pytest.raises(EmployeeNotFoundException):
            await service.request_advance(test_tenant.id, [outsider.id], Decimal("1000"), "Rent")

    @pytest.mark.asyncio
    async def test_unknown_employee(self, db_session, test_tenant, make_employee, gateway):
        employee = await make_employee(test_tenant)
        service = build_service(db_session, gateway)

        with pytest.raises(EmployeeNotFoundException):
            await service.request_advance(
                test_tenant.id, [employee.id, uuid4()], Decimal("1000"), "Rent",
            )
        assert await service.list_advances(test_tenant.id) == []


class TestApproveAdvance:

    @pytest.mark.asyncio
    async def test_all_transfers_complete(self, db_session, test_tenant, make_employee, gateway):
        first = await make_employee(test_tenant, first_name="Amina")
        second = await make_employee(test_tenant, first_name="Brian")
        service = build_service(db_session, gateway)
        advance = await service.request_advance(
            test_tenant.id, [first.id, second.id], Decimal("1000"), "Emergency",
        )

        approved = await service.approve_advance(test_tenant.id, advance.id, approved_by="user-001")

        assert approved.status == AdvanceStatus.DISBURSED
        assert approved.approved_by == "user-001"
        assert approved.approval_date is not None
        assert approved.disbursement_date is not None
        assert [t.amount for t in gateway.attempts] == [Decimal("500.00"), Decimal("500.00")]
        assert len(approved.transaction_reference.split(",")) == 2

    @pytest.mark.asyncio
    async def test_partial_failure_marks_failed(
        self, db_session, test_tenant, make_employee, make_gateway
    ):
        first = await make_employee(test_tenant, first_name="Amina")
        second = await make_employee(test_tenant, first_name="Brian")
        service = build_service(db_session, make_gateway([True, False]))
        advance = await service.request_advance(
            test_tenant.id, [first.id, second.id], Decimal("1000"), "Emergency",
        )

        approved = await service.approve_advance(test_tenant.id, advance.id)
        transactions = await service.disbursement.list_transactions(
            test_tenant.id, salary_advance_id=advance.id,
        )

        assert approved.status == AdvanceStatus.FAILED
        assert sorted(t.status.value for t in transactions) == ["completed", "failed"]
        references = set(approved.transaction_reference.split(","))
        assert references == {t.transaction_reference for t in transactions}

    @pytest.mark.asyncio
    async def test_shares_follow_employee_number_order(
        self, db_session, test_tenant, make_employee, gateway
    ):
        first = await make_employee(test_tenant, first_name="Amina")
        second = await make_employee(test_tenant, first_name="Brian")
        service = build_service(db_session, gateway)
        advance = await service.request_advance(
            test_tenant.id, [second.id, first.id], Decimal("1000.01"), "Emergency",
        )

        await service.approve_advance(test_tenant.id, advance.id)

        paid = [(t.employee_id, t.amount) for t in gateway.attempts]
        assert paid == [(first.id, Decimal("500.01")), (second.id, Decimal("500.00"))]

    @pytest.mark.asyncio
    async def test_unbanked_employees_skipped(self, db_session, test_tenant, make_employee, gateway):
        banked = await make_employee(test_tenant, first_name="Amina")
        unbanked = await make_employee(test_tenant, first_name="Brian", with_bank=False)
        service = build_service(db_session, gateway)
        advance = await service.request_advance(
            test_tenant.id, [banked.id, unbanked.id], Decimal("1000"), "Emergency",
        )

        approved = await service.approve_advance(test_tenant.id, advance.id)

        # The share is still computed over both employees
        assert [(t.employee_id, t.amount) for t in gateway.attempts] == [(banked.id, Decimal("500.00"))]
        assert approved.status == AdvanceStatus.DISBURSED

    @pytest.mark.asyncio
    async def test_no_banked_employee_stays_approved(
        self, db_session, test_tenant, make_employee, gateway
    ):
        employee = await make_employee(test_tenant, with_bank=False)
        service = build_service(db_session, gateway)
        advance = await service.request_advance(test_tenant.id, [employee.id], Decimal("1000"), "Rent")

        approved = await service.approve_advance(test_tenant.id, advance.id)

        assert approved.status == AdvanceStatus.APPROVED
        assert approved.transaction_reference is None
        assert gateway.attempts == []

    @pytest.mark.asyncio
    async def test_deleted_roster_stays_approved(
        self, db_session, test_tenant, make_employee, gateway
    ):
        employee = await make_employee(test_tenant)
        advance = await build_service(db_session, gateway).request_advance(
            test_tenant.id, [employee.id], Decimal("1000"), "Rent",
        )
        await EmployeeService(db_session).delete_employee(test_tenant.id, employee.id)

        fresh_sessions = async_sessionmaker(db_session.bind, class_=AsyncSession, expire_on_commit=False)
        async with fresh_sessions() as session:
            approved = await build_service(session, gateway).approve_advance(
                test_tenant.id, advance.id, approved_by="user-001",
            )

            assert approved.status == AdvanceStatus.APPROVED
            assert approved.transaction_reference is None
            assert gateway.attempts == []

        async with fresh_sessions() as session:
            stored = await session.scalar(
                select(SalaryAdvance.status).where(SalaryAdvance.id == advance.id)
            )
            assert stored == AdvanceStatus.APPROVED

    @pytest.mark.asyncio
    async def test_reject_then_approve(self, db_session, test_tenant, make_employee, gateway):
        employee = await make_employee(test_tenant)
        service = build_service(db_session, gateway)
        advance = await service.request_advance(test_tenant.id, [employee.id], Decimal("1000"), "Rent")

        rejected = await service.update_status(
            test_tenant.id, advance.id, AdvanceStatus.REJECTED, user_id="user-001", comments="Too soon",
        )

        assert rejected.status == AdvanceStatus.REJECTED
        assert rejected.comments == "Too soon"
        with pytest.raises(InvalidStatusTransitionException):
            await service.update_status(test_tenant.id, advance.id, AdvanceStatus.APPROVED)
        assert gateway.attempts == []

    @pytest.mark.asyncio
    async def test_cannot_set_disbursed_directly(self, db_session, test_tenant, make_employee, gateway):
        employee = await make_employee(test_tenant)
        service = build_service(db_session, gateway)
        advance = await service.request_advance(test_tenant.id, [employee.id], Decimal("1000"), "Rent")

        with pytest.raises(InvalidStatusTransitionException):
            await service.update_status(test_tenant.id, advance.id, AdvanceStatus.DISBURSED)

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, db_session, test_tenant, make_employee, gateway):
        employee = await make_employee(test_tenant)
        service = build_service(db_session, gateway)
        first = await service.request_advance(test_tenant.id, [employee.id], Decimal("1000"), "Rent")
        await service.request_advance(test_tenant.id, [employee.id], Decimal("2000"), "Fees")
        await service.reject_advance(test_tenant.id, first.id)

        pending = await service.list_advances(test_tenant.id, status=AdvanceStatus.PENDING)

        assert [a.amount for a in pending] == [Decimal("2000.00")]
        assert len(await service.list_advances(test_tenant.id)) == 2
