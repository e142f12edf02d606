"""
Stafma Payroll - Disbursement Service

Moves money to employees through a TransferGateway and keeps one Transaction
row per attempt.

Every attempt:
1. Creates a transaction in PENDING status with a fresh reference.
2. Asks the gateway to transfer, bounded by a timeout.
3. Marks the transaction COMPLETED, or FAILED with an error message.

A call never returns while one of its transactions is still pending. With
``concurrency > 1`` the gateway calls of a batch run concurrently (bounded by
a semaphore); database writes stay on the caller's session and happen in
request order.
"""

import asyncio
import logging
import secrets
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.config import settings
from stafma.models.transaction import Transaction, TransactionStatus
from stafma.services.deduction_policy import to_money
from stafma.services.transfer_gateway import BankDetails, SimulatedTransferGateway, TransferGateway
from stafma.utils.error_handling import (
    BankTransferException,
    InvalidStatusTransitionException,
    TransactionNotFoundException,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisbursementRequest:
    """One transfer to make."""
    tenant_id: uuid.UUID
    employee_id: uuid.UUID
    amount: Decimal
    source: BankDetails
    destination: BankDetails
    payroll_record_id: Optional[uuid.UUID] = None
    salary_advance_id: Optional[uuid.UUID] = None


def generate_transaction_reference(prefix: Optional[str] = None) -> str:
    """
    Human-displayable unique reference: prefix + epoch milliseconds + 6 hex chars.

    e.g. TRX1718000000000A3F09C
    """
    prefix = settings.transaction_reference_prefix if prefix is None else prefix
    timestamp = int(time.time() * 1000)
    return f"{prefix}{timestamp}{secrets.token_hex(3).upper()}"


class DisbursementService:
    """Creates and settles disbursement transactions."""

    def __init__(
        self,
        db: AsyncSession,
        gateway: Optional[TransferGateway] = None,
        timeout_seconds: Optional[float] = None,
        concurrency: Optional[int] = None,
    ):
        self.db = db
        self.gateway = gateway or SimulatedTransferGateway()
        self.timeout_seconds = (
            settings.transfer_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.concurrency = max(1, settings.disbursement_concurrency if concurrency is None else concurrency)

    # ===========================================
    # DISBURSEMENT
    # ===========================================

    async def disburse(self, request: DisbursementRequest) -> Transaction:
        """Disburse a single amount; returns the settled transaction."""
        transactions = await self.disburse_many([request])
        return transactions[0]

    async def disburse_many(self, requests: Sequence[DisbursementRequest]) -> List[Transaction]:
        """
        Disburse a batch of amounts.

        Returns the settled transactions in the same order as ``requests``.
        """
        if not requests:
            return []

        transactions = [self._open_transaction(request) for request in requests]
        await self.db.commit()

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded_attempt(transaction: Transaction) -> Tuple[bool, Optional[str]]:
            async with semaphore:
                return await self._attempt(transaction)

        outcomes = await asyncio.gather(*(bounded_attempt(t) for t in transactions))

        for transaction, (success, error_message) in zip(transactions, outcomes):
            self._settle(transaction, success, error_message)

        await self.db.commit()

        completed = sum(1 for t in transactions if t.status == TransactionStatus.COMPLETED)
        logger.info(f"Disbursed {completed}/{len(transactions)} transfers successfully")
        return transactions

    def _open_transaction(self, request: DisbursementRequest) -> Transaction:
        transaction = Transaction(
            tenant_id=request.tenant_id,
            employee_id=request.employee_id,
            payroll_record_id=request.payroll_record_id,
            salary_advance_id=request.salary_advance_id,
            amount=to_money(request.amount),
            status=TransactionStatus.PENDING,
            source_account=request.source.to_dict(),
            destination_account=request.destination.to_dict(),
            transaction_reference=generate_transaction_reference(),
            transaction_date=datetime.now(timezone.utc),
        )
        self.db.add(transaction)
        return transaction

    async def _attempt(self, transaction: Transaction) -> Tuple[bool, Optional[str]]:
        """Run the gateway call; never raises for transfer-level failures."""
        try:
            success = await asyncio.wait_for(
                self.gateway.attempt(transaction),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Transfer {transaction.transaction_reference} timed out")
            return False, f"Bank transfer timed out after {self.timeout_seconds:g} seconds"
        except BankTransferException as e:
            logger.warning(f"Transfer {transaction.transaction_reference} rejected: {e.message}")
            return False, e.message
        except Exception as e:
            logger.exception(f"Transfer {transaction.transaction_reference} raised an error")
            return False, f"Bank transfer error: {e}"

        if not success:
            return False, "Bank transfer simulation failed"
        return True, None

    def _settle(self, transaction: Transaction, success: bool, error_message: Optional[str]) -> None:
        if transaction.status.is_terminal:
            raise InvalidStatusTransitionException(
                "Transaction",
                transaction.status.value,
                TransactionStatus.COMPLETED.value if success else TransactionStatus.FAILED.value,
            )

        if success:
            transaction.status = TransactionStatus.COMPLETED
        else:
            transaction.status = TransactionStatus.FAILED
            transaction.error_message = error_message
            logger.warning(
                f"Transfer {transaction.transaction_reference} of {transaction.amount} "
                f"to employee {transaction.employee_id} failed: {error_message}"
            )

    # ===========================================
    # QUERIES
    # ===========================================

    async def get_transaction(self, tenant_id: uuid.UUID, reference: str) -> Transaction:
        """Get a tenant's transaction by reference."""
        result = await self.db.execute(
            select(Transaction).where(
                Transaction.tenant_id == tenant_id,
                Transaction.transaction_reference == reference,
            )
        )
        transaction = result.scalar_one_or_none()
        if transaction is None:
            raise TransactionNotFoundException(reference)
        return transaction

    async def get_transaction_status(self, tenant_id: uuid.UUID, reference: str) -> TransactionStatus:
        transaction = await self.get_transaction(tenant_id, reference)
        return transaction.status

    async def list_transactions(
        self,
        tenant_id: uuid.UUID,
        salary_advance_id: Optional[uuid.UUID] = None,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[TransactionStatus] = None,
    ) -> List[Transaction]:
        """List a tenant's transactions, newest first."""
        query = select(Transaction).where(Transaction.tenant_id == tenant_id)

        if salary_advance_id:
            query = query.where(Transaction.salary_advance_id == salary_advance_id)
        if employee_id:
            query = query.where(Transaction.employee_id == employee_id)
        if status:
            query = query.where(Transaction.status == status)

        query = query.order_by(Transaction.transaction_date.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())
