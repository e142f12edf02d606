"""
Stafma Payroll - Test Configuration

Pytest fixtures and configuration.

Tests run against an in-memory SQLite database and a scripted transfer
gateway, so no PostgreSQL server or bank simulator is needed.
"""

import asyncio
import os

os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("APP_ENV", "testing")

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Iterable, List, Optional, Union
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import stafma.models  # noqa: F401
from stafma.database import Base, get_async_session
from stafma.dependencies import get_transfer_gateway
from stafma.models.employee import Employee
from stafma.models.tenant import Tenant
from stafma.models.transaction import Transaction
from stafma.services.employee_service import EmployeeService
from stafma.services.transfer_gateway import TransferGateway
from stafma.utils.security import create_access_token
from main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ===========================================
# TRANSFER GATEWAY DOUBLE
# ===========================================

Outcome = Union[bool, Exception]


class ScriptedTransferGateway(TransferGateway):
    """
    Gateway whose outcomes are fixed up front.

    Each attempt takes the next outcome: True/False is returned, an exception
    instance is raised. Once the script runs out every transfer succeeds.
    """

    def __init__(self, outcomes: Iterable[Outcome] = (), delay_seconds: float = 0.0):
        self.outcomes: List[Outcome] = list(outcomes)
        self.delay_seconds = delay_seconds
        self.attempts: List[Transaction] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def attempt(self, transaction: Transaction) -> bool:
        self.attempts.append(transaction)
        outcome = self.outcomes.pop(0) if self.outcomes else True

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)
        finally:
            self.in_flight -= 1

        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def gateway() -> ScriptedTransferGateway:
    """Gateway where every transfer succeeds unless a test scripts otherwise."""
    return ScriptedTransferGateway()


@pytest.fixture
def make_gateway():
    """Build a gateway with scripted outcomes and an optional delay."""
    return ScriptedTransferGateway


# ===========================================
# DATABASE
# ===========================================

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession, gateway: ScriptedTransferGateway
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session and gateway overrides."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session
    app.dependency_overrides[get_transfer_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest_asyncio.fixture
async def test_tenant(db_session: AsyncSession) -> Tenant:
    """Create a business registered in January 2023."""
    tenant = Tenant(
        id=uuid4(),
        name="Acme Traders Ltd",
        email="payroll@acme.example.com",
        registered_on=date(2023, 1, 15),
        settlement_account_number="0011223344",
    )
    db_session.add(tenant)
    await db_session.commit()
    await db_session.refresh(tenant)
    return tenant


@pytest_asyncio.fixture
async def other_tenant(db_session: AsyncSession) -> Tenant:
    """A second business, for isolation checks."""
    tenant = Tenant(
        id=uuid4(),
        name="Globex Kenya",
        email="hr@globex.example.com",
        registered_on=date(2023, 1, 1),
    )
    db_session.add(tenant)
    await db_session.commit()
    await db_session.refresh(tenant)
    return tenant


BANK_DETAILS = {
    "bank_name": "Equity Bank",
    "account_number": "0123456789",
    "branch_name": "Westlands",
    "bank_code": "068",
}


@pytest.fixture
def make_employee(db_session: AsyncSession):
    """Factory creating employees through the employee service."""

    async def _make(
        tenant: Tenant,
        first_name: str = "Jane",
        last_name: str = "Wanjiru",
        basic_salary: Decimal = Decimal("50000.00"),
        with_bank: bool = True,
        email: Optional[str] = None,
        **fields,
    ) -> Employee:
        service = EmployeeService(db_session)
        if with_bank:
            fields = {**BANK_DETAILS, "account_name": f"{first_name} {last_name}", **fields}
        return await service.create_employee(
            tenant_id=tenant.id,
            first_name=first_name,
            last_name=last_name,
            email=email or f"{first_name}.{last_name}@example.com".lower(),
            position="Accountant",
            department="Finance",
            start_date=date(2023, 2, 1),
            basic_salary=basic_salary,
            **fields,
        )

    return _make


# ===========================================
# AUTH FIXTURES
# ===========================================

def auth_headers_for(tenant: Tenant, role: str = "manager", user_id: str = "user-001") -> dict:
    """Authorization header carrying the tenant, user and role claims."""
    token = create_access_token({"sub": user_id, "tenant_id": str(tenant.id), "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Build authorization headers for any tenant and role."""
    return auth_headers_for


@pytest.fixture
def auth_headers(test_tenant: Tenant) -> dict:
    """Bearer token for a non-admin user of the test tenant."""
    return auth_headers_for(test_tenant)


@pytest.fixture
def admin_headers(test_tenant: Tenant) -> dict:
    """Bearer token for a payroll administrator of the test tenant."""
    return auth_headers_for(test_tenant, role="admin", user_id="admin-001")
