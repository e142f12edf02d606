"""
Stafma Payroll - Bank Transfer Gateway

The disbursement service never talks to a bank directly; it asks a
TransferGateway to attempt a transfer and gets back success or failure.

SimulatedTransferGateway stands in for a bank: it waits for a configurable
latency and succeeds with a configurable probability. Tests inject their own
gateway to make outcomes deterministic.
"""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from stafma.config import settings

if TYPE_CHECKING:
    from stafma.models.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BankDetails:
    """Bank account snapshot stored on every transaction."""
    bank_name: str
    account_name: str
    account_number: str
    branch_name: Optional[str] = None
    swift_code: Optional[str] = None
    bank_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


class TransferGateway(ABC):
    """Capability to move money to an employee's account."""

    @abstractmethod
    async def attempt(self, transaction: "Transaction") -> bool:
        """Attempt the transfer; True on success, False when the bank declines."""
        ...


class SimulatedTransferGateway(TransferGateway):
    """
    Simulated bank transfer.

    Sleeps ``latency_seconds`` then succeeds with probability ``success_rate``.
    """

    def __init__(
        self,
        success_rate: float = None,
        latency_seconds: float = None,
        rng: Optional[random.Random] = None,
    ):
        self.success_rate = settings.transfer_success_rate if success_rate is None else success_rate
        self.latency_seconds = settings.transfer_latency_seconds if latency_seconds is None else latency_seconds
        self.rng = rng or random.Random()

    async def attempt(self, transaction: "Transaction") -> bool:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)
        success = self.rng.random() < self.success_rate
        logger.debug(
            f"Simulated transfer {transaction.transaction_reference} "
            f"{'succeeded' if success else 'declined'}"
        )
        return success
