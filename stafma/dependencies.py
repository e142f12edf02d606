"""
Stafma Payroll - FastAPI Dependencies

Shared dependencies for the tenant context and service wiring.

Every request carries a bearer token issued by the authentication service.
Its claims give the tenant (``tenant_id``), the acting user (``sub``) and
the user's role (``role``). The tenant ID is passed explicitly to every
service call; nothing downstream reads it from ambient state.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.config import settings
from stafma.database import get_async_session
from stafma.services.disbursement_service import DisbursementService
from stafma.services.transfer_gateway import SimulatedTransferGateway, TransferGateway
from stafma.utils.error_handling import (
    AuthenticationException,
    ErrorCode,
    InsufficientPermissionsException,
)
from stafma.utils.security import verify_access_token


# HTTP Bearer token security
security = HTTPBearer(auto_error=False)

PAYROLL_ADMIN_ROLE = "admin"

# One simulated bank for the whole process
_transfer_gateway = SimulatedTransferGateway()


@dataclass(frozen=True)
class TenantContext:
    """Authenticated caller."""
    tenant_id: uuid.UUID
    user_id: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == PAYROLL_ADMIN_ROLE


async def get_tenant_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TenantContext:
    """
    Resolve the caller from the JWT.

    Token can be provided via:
    1. Authorization: Bearer <token> header
    2. access_token cookie
    """
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get("access_token")
        if token and token.startswith("Bearer "):
            token = token[7:]

    if not token:
        raise AuthenticationException("Not authenticated")

    payload = verify_access_token(token)
    if not payload:
        raise AuthenticationException("Invalid or expired token", code=ErrorCode.TOKEN_INVALID)

    user_id = payload.get("sub")
    raw_tenant_id = payload.get("tenant_id")
    if not user_id or not raw_tenant_id:
        raise AuthenticationException("Invalid token payload", code=ErrorCode.TOKEN_INVALID)

    try:
        tenant_id = uuid.UUID(str(raw_tenant_id))
    except ValueError:
        raise AuthenticationException("Invalid tenant ID in token", code=ErrorCode.TOKEN_INVALID)

    return TenantContext(tenant_id=tenant_id, user_id=str(user_id), role=payload.get("role"))


async def get_current_tenant_id(
    context: TenantContext = Depends(get_tenant_context),
) -> uuid.UUID:
    return context.tenant_id


async def require_payroll_admin(
    context: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    """Only payroll administrators may overwrite processed payroll records."""
    if not context.is_admin:
        raise InsufficientPermissionsException(PAYROLL_ADMIN_ROLE)
    return context


def get_transfer_gateway() -> TransferGateway:
    return _transfer_gateway


def get_disbursement_service(
    db: AsyncSession = Depends(get_async_session),
    gateway: TransferGateway = Depends(get_transfer_gateway),
) -> DisbursementService:
    return DisbursementService(
        db,
        gateway=gateway,
        timeout_seconds=settings.transfer_timeout_seconds,
        concurrency=settings.disbursement_concurrency,
    )
