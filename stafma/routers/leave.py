"""
Stafma Payroll - Leave Router
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.database import get_async_session
from stafma.dependencies import TenantContext, get_current_tenant_id, get_tenant_context
from stafma.models.leave import LeaveStatus
from stafma.schemas.leave import LeaveRequestCreate, LeaveRequestResponse, LeaveStatusUpdate
from stafma.services.leave_service import LeaveService


router = APIRouter()


@router.post(
    "/request",
    response_model=LeaveRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request leave",
    description="Rejected when it overlaps another pending or approved request of the employee.",
)
async def request_leave(
    data: LeaveRequestCreate,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = LeaveService(db)
    return await service.request_leave(
        tenant_id,
        employee_id=data.employee_id,
        leave_type=data.leave_type,
        start_date=data.start_date,
        end_date=data.end_date,
        reason=data.reason,
    )


@router.get(
    "/employee/{employee_id}",
    response_model=List[LeaveRequestResponse],
    summary="Leave requests of an employee",
)
async def list_employee_leave(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = LeaveService(db)
    return await service.list_for_employee(tenant_id, employee_id)


@router.get(
    "/business",
    response_model=List[LeaveRequestResponse],
    summary="Leave requests of the business",
)
async def list_business_leave(
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = LeaveService(db)
    return await service.list_for_tenant(tenant_id, status=status_filter)


@router.patch(
    "/{leave_id}",
    response_model=LeaveRequestResponse,
    summary="Approve or reject a leave request",
)
async def update_leave_status(
    leave_id: uuid.UUID,
    data: LeaveStatusUpdate,
    db: AsyncSession = Depends(get_async_session),
    context: TenantContext = Depends(get_tenant_context),
):
    service = LeaveService(db)
    return await service.update_status(
        context.tenant_id,
        leave_id,
        LeaveStatus(data.status),
        user_id=context.user_id,
        comments=data.comments,
    )
