"""
Stafma Payroll - Tenant Service

Registration itself happens upstream; this service stores the tenant fields
payroll depends on and resolves tenants for the other services.
"""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.models.tenant import Tenant
from stafma.utils.error_handling import DuplicateEntryException, TenantNotFoundException


class TenantService:
    """Service for tenant operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_tenant(self, tenant_id: uuid.UUID) -> Tenant:
        """Get tenant by ID; raises TenantNotFoundException."""
        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundException(tenant_id)
        return tenant

    async def get_tenant_by_email(self, email: str) -> Optional[Tenant]:
        result = await self.db.execute(select(Tenant).where(Tenant.email == email.lower()))
        return result.scalar_one_or_none()

    async def create_tenant(
        self,
        name: str,
        email: str,
        registered_on: Optional[date] = None,
        settlement_account_number: Optional[str] = None,
        tenant_id: Optional[uuid.UUID] = None,
    ) -> Tenant:
        """Create a tenant; ``tenant_id`` lets the registration service choose the ID."""
        if await self.get_tenant_by_email(email):
            raise DuplicateEntryException("Tenant", "email", email)

        tenant = Tenant(
            name=name,
            email=email.lower(),
            registered_on=registered_on or date.today(),
            settlement_account_number=settlement_account_number,
        )
        if tenant_id is not None:
            tenant.id = tenant_id

        self.db.add(tenant)
        await self.db.commit()
        await self.db.refresh(tenant)

        return tenant
