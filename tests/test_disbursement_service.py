"""
Stafma Payroll - Disbursement Service Tests

Transfers run against scripted gateways; no bank simulator delay.
"""

import re

import pytest
from decimal import Decimal

from stafma.models.transaction import TransactionStatus
from stafma.services.disbursement_service import (
    DisbursementRequest,
    DisbursementService,
    generate_transaction_reference,
)
from stafma.services.transfer_gateway import BankDetails
from stafma.utils.error_handling import (
    BankTransferException,
    InvalidStatusTransitionException,
    TransactionNotFoundException,
)


SOURCE = BankDetails(bank_name="Stafma Bank", account_name="Acme Traders Ltd", account_number="1234567890")


def request_for(employee, amount="1000.00"):
    return DisbursementRequest(
        tenant_id=employee.tenant_id,
        employee_id=employee.id,
        amount=Decimal(amount),
        source=SOURCE,
        destination=employee.bank_details,
    )


class TestTransactionReference:

    def test_format(self):
        reference = generate_transaction_reference()

        assert re.fullmatch(r"TRX\d{13}[0-9A-F]{6}", reference)

    def test_custom_prefix(self):
        assert generate_transaction_reference("ADV").startswith("ADV")

    def test_references_are_unique(self):
        references = {generate_transaction_reference() for _ in range(200)}

        assert len(references) == 200


class TestDisburse:

    @pytest.mark.asyncio
    async def test_successful_transfer(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        service = DisbursementService(db_session, gateway=make_gateway([True]))

        transaction = await service.disburse(request_for(employee, "50320.00"))

        assert transaction.status == TransactionStatus.COMPLETED
        assert transaction.amount == Decimal("50320.00")
        assert transaction.error_message is None
        assert transaction.source_account["account_number"] == "1234567890"
        assert transaction.destination_account["account_number"] == "0123456789"
        assert transaction.destination_account["account_name"] == employee.full_name

    @pytest.mark.asyncio
    async def test_declined_transfer(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        service = DisbursementService(db_session, gateway=make_gateway([False]))

        transaction = await service.disburse(request_for(employee))

        assert transaction.status == TransactionStatus.FAILED
        assert transaction.error_message == "Bank transfer simulation failed"

    @pytest.mark.asyncio
    async def test_timeout_marks_failed(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        service = DisbursementService(
            db_session,
            gateway=make_gateway([True], delay_seconds=1.0),
            timeout_seconds=0.05,
        )

        transaction = await service.disburse(request_for(employee))

        assert transaction.status == TransactionStatus.FAILED
        assert "timed out" in transaction.error_message

    @pytest.mark.asyncio
    async def test_gateway_error_marks_failed(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        service = DisbursementService(db_session, gateway=make_gateway([RuntimeError("socket closed")]))

        transaction = await service.disburse(request_for(employee))

        assert transaction.status == TransactionStatus.FAILED
        assert transaction.error_message == "Bank transfer error: socket closed"

    @pytest.mark.asyncio
    async def test_bank_rejection_marks_failed(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        gateway = make_gateway([BankTransferException("account dormant")])
        service = DisbursementService(db_session, gateway=gateway)

        transaction = await service.disburse(request_for(employee))

        assert transaction.status == TransactionStatus.FAILED
        assert transaction.error_message == "Bank transfer error: account dormant"

    @pytest.mark.asyncio
    async def test_batch_keeps_request_order(self, db_session, test_tenant, make_employee, make_gateway):
        first = await make_employee(test_tenant, first_name="Amina")
        second = await make_employee(test_tenant, first_name="Brian")
        third = await make_employee(test_tenant, first_name="Chao")
        service = DisbursementService(db_session, gateway=make_gateway([True, False, True]))

        transactions = await service.disburse_many([
            request_for(first, "100.00"),
            request_for(second, "200.00"),
            request_for(third, "300.00"),
        ])

        assert [t.employee_id for t in transactions] == [first.id, second.id, third.id]
        assert [t.status for t in transactions] == [
            TransactionStatus.COMPLETED, TransactionStatus.FAILED, TransactionStatus.COMPLETED,
        ]
        assert len({t.transaction_reference for t in transactions}) == 3

    @pytest.mark.asyncio
    async def test_no_transaction_left_pending(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        service = DisbursementService(
            db_session,
            gateway=make_gateway([True, RuntimeError("boom"), False]),
        )

        await service.disburse_many([request_for(employee) for _ in range(3)])

        pending = await service.list_transactions(test_tenant.id, status=TransactionStatus.PENDING)
        assert pending == []

    @pytest.mark.asyncio
    async def test_empty_batch(self, db_session, make_gateway):
        gateway = make_gateway()
        service = DisbursementService(db_session, gateway=gateway)

        assert await service.disburse_many([]) == []
        assert gateway.attempts == []

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        gateway = make_gateway(delay_seconds=0.05)
        service = DisbursementService(db_session, gateway=gateway, concurrency=2)

        transactions = await service.disburse_many([request_for(employee) for _ in range(5)])

        assert gateway.max_in_flight == 2
        assert all(t.status == TransactionStatus.COMPLETED for t in transactions)

    @pytest.mark.asyncio
    async def test_sequential_by_default(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        gateway = make_gateway(delay_seconds=0.01)
        service = DisbursementService(db_session, gateway=gateway, concurrency=1)

        await service.disburse_many([request_for(employee) for _ in range(3)])

        assert gateway.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_settled_transaction_is_final(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        service = DisbursementService(db_session, gateway=make_gateway([True]))
        transaction = await service.disburse(request_for(employee))

        with pytest.raises(InvalidStatusTransitionException):
            service._settle(transaction, False, "late failure")

        assert transaction.status == TransactionStatus.COMPLETED


class TestTransactionQueries:

    @pytest.mark.asyncio
    async def test_status_by_reference(self, db_session, test_tenant, make_employee, make_gateway):
        employee = await make_employee(test_tenant)
        service = DisbursementService(db_session, gateway=make_gateway([False]))
        transaction = await service.disburse(request_for(employee))

        status = await service.get_transaction_status(test_tenant.id, transaction.transaction_reference)

        assert status == TransactionStatus.FAILED

    @pytest.mark.asyncio
    async def test_unknown_reference(self, db_session, test_tenant, make_gateway):
        service = DisbursementService(db_session, gateway=make_gateway())

        with pytest.raises(TransactionNotFoundException):
            await service.get_transaction_status(test_tenant.id, "TRX0000000000000ABCDEF")

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_read(
        self, db_session, test_tenant, other_tenant, make_employee, make_gateway
    ):
        employee = await make_employee(test_tenant)
        service = DisbursementService(db_session, gateway=make_gateway())
        transaction = await service.disburse(request_for(employee))

        with pytest.raises(TransactionNotFoundException):
            await service.get_transaction(other_tenant.id, transaction.transaction_reference)
