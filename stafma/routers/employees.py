"""
Stafma Payroll - Employees Router

Employee roster endpoints.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.database import get_async_session
from stafma.dependencies import get_current_tenant_id
from stafma.models.employee import EmployeeStatus
from stafma.schemas.employee import (
    BankDetailsUpdate,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    MessageResponse,
)
from stafma.services.employee_service import EmployeeService


router = APIRouter()


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new employee",
    description="The next sequential employee number is assigned automatically.",
)
async def create_employee(
    data: EmployeeCreate,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = EmployeeService(db)
    fields = data.model_dump()
    return await service.create_employee(tenant_id=tenant_id, **fields)


@router.get(
    "",
    response_model=List[EmployeeResponse],
    summary="List employees",
)
async def list_employees(
    status_filter: Optional[EmployeeStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = EmployeeService(db)
    return await service.list_employees(tenant_id, status=status_filter)


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Get employee details",
)
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = EmployeeService(db)
    return await service.get_employee(tenant_id, employee_id)


@router.patch(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Update employee",
)
async def update_employee(
    employee_id: uuid.UUID,
    data: EmployeeUpdate,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = EmployeeService(db)
    return await service.update_employee(
        tenant_id, employee_id, data.model_dump(exclude_unset=True),
    )


@router.put(
    "/{employee_id}/bank-details",
    response_model=EmployeeResponse,
    summary="Replace bank details",
    description="Bank name, account name, account number and branch are replaced together.",
)
async def update_bank_details(
    employee_id: uuid.UUID,
    data: BankDetailsUpdate,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = EmployeeService(db)
    return await service.update_bank_details(tenant_id, employee_id, data.model_dump())


@router.delete(
    "/{employee_id}/bank-details",
    response_model=EmployeeResponse,
    summary="Clear bank details",
    description="The employee keeps getting payroll records but no transfers.",
)
async def clear_bank_details(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = EmployeeService(db)
    return await service.update_bank_details(tenant_id, employee_id, None)


@router.delete(
    "/{employee_id}",
    response_model=MessageResponse,
    summary="Delete employee",
    description="Also deletes the employee's payroll records, transactions and leave requests.",
)
async def delete_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = EmployeeService(db)
    await service.delete_employee(tenant_id, employee_id)
    return {"message": "Employee deleted successfully"}
