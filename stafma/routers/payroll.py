"""
Stafma Payroll - Payroll Router

API endpoints for payroll runs, payroll history, transaction status and
salary advances. The tenant comes from the bearer token.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stafma.database import get_async_session
from stafma.dependencies import (
    TenantContext,
    get_current_tenant_id,
    get_disbursement_service,
    get_tenant_context,
    require_payroll_admin,
)
from stafma.models.salary_advance import AdvanceStatus
from stafma.schemas.payroll import (
    AdvanceRequestCreate,
    AdvanceResponse,
    AdvanceStatusUpdate,
    PayrollPeriodRequest,
    PayrollRecordResponse,
    PayrollRunResponse,
    PayrollSummaryResponse,
    PeriodStatusResponse,
    ProcessEmployeeRequest,
    TransactionResponse,
)
from stafma.services.disbursement_service import DisbursementService
from stafma.services.payroll_service import PayrollService
from stafma.services.salary_advance_service import SalaryAdvanceService


router = APIRouter()


# ===========================================
# PAYROLL RUNS
# ===========================================

@router.post(
    "/process",
    response_model=PayrollRunResponse,
    summary="Process monthly payroll",
    description=(
        "Compute payroll for every active employee and pay those with bank details. "
        "Per-employee problems are returned as warnings; the run is rejected only "
        "for an ineligible period or an empty roster."
    ),
)
async def process_payroll(
    data: PayrollPeriodRequest,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
    disbursement: DisbursementService = Depends(get_disbursement_service),
):
    """Process payroll for a period."""
    service = PayrollService(db, disbursement=disbursement)
    result = await service.process_payroll(tenant_id, data.month, data.year)

    return {
        "message": "Payroll processed successfully",
        "count": result.processed_count,
        "warnings": result.warnings,
        "transactions": [t.to_summary() for t in result.transactions],
    }


@router.post(
    "/process-employee",
    response_model=PayrollRecordResponse,
    summary="Recompute one employee's payroll",
    description=(
        "Correction path for payroll administrators: recomputes and overwrites the "
        "employee's record for the period. Period checks are skipped and no transfer is made."
    ),
)
async def process_employee(
    data: ProcessEmployeeRequest,
    db: AsyncSession = Depends(get_async_session),
    context: TenantContext = Depends(require_payroll_admin),
):
    """Recompute one employee's payroll record."""
    service = PayrollService(db)
    record = await service.process_single_employee(
        context.tenant_id, data.employee_id, data.month, data.year,
    )
    return PayrollRecordResponse.from_record(record)


# ===========================================
# HISTORY & REPORTING
# ===========================================

@router.get(
    "/history",
    response_model=List[PayrollRecordResponse],
    summary="Payroll history",
)
async def get_payroll_history(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = PayrollService(db)
    records = await service.get_payroll_history(tenant_id, month=month, year=year)
    return [PayrollRecordResponse.from_record(record) for record in records]


@router.get(
    "/check-processed",
    response_model=PeriodStatusResponse,
    summary="Check whether a period has been processed",
)
async def check_processed(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = PayrollService(db)
    result = await service.check_processed(tenant_id, month, year)
    return {"month": month, "year": year, **result}


@router.get(
    "/summary",
    response_model=PayrollSummaryResponse,
    summary="Payroll totals for a period",
)
async def get_payroll_summary(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = PayrollService(db)
    return await service.get_payroll_summary(tenant_id, month, year)


@router.get(
    "/employee/{employee_id}",
    response_model=List[PayrollRecordResponse],
    summary="Payroll history of an employee",
)
async def get_employee_payroll_history(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = PayrollService(db)
    records = await service.get_employee_payroll_history(tenant_id, employee_id)
    return [PayrollRecordResponse.from_record(record) for record in records]


@router.get(
    "/transaction/{reference}",
    response_model=TransactionResponse,
    summary="Transaction status by reference",
)
async def get_transaction(
    reference: str,
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
    disbursement: DisbursementService = Depends(get_disbursement_service),
):
    return await disbursement.get_transaction(tenant_id, reference)


# ===========================================
# SALARY ADVANCES
# ===========================================

@router.post(
    "/advance-request",
    response_model=AdvanceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a salary advance",
    description="A 5% fee is charged on the amount; repayment is due 30 days after the request.",
)
async def request_advance(
    data: AdvanceRequestCreate,
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = SalaryAdvanceService(db)
    return await service.request_advance(
        tenant_id,
        employee_ids=data.employee_ids,
        amount=data.amount,
        reason=data.reason,
        request_date=data.request_date,
    )


@router.get(
    "/advance-requests",
    response_model=List[AdvanceResponse],
    summary="List salary advance requests",
)
async def list_advance_requests(
    status_filter: Optional[AdvanceStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_async_session),
    tenant_id: uuid.UUID = Depends(get_current_tenant_id),
):
    service = SalaryAdvanceService(db)
    return await service.list_advances(tenant_id, status=status_filter)


@router.patch(
    "/advance-request/{advance_id}",
    response_model=AdvanceResponse,
    summary="Approve or reject a salary advance",
    description="Approval disburses the amount split equally across the selected employees.",
)
async def update_advance_request(
    advance_id: uuid.UUID,
    data: AdvanceStatusUpdate,
    db: AsyncSession = Depends(get_async_session),
    context: TenantContext = Depends(get_tenant_context),
    disbursement: DisbursementService = Depends(get_disbursement_service),
):
    service = SalaryAdvanceService(db, disbursement=disbursement)
    return await service.update_status(
        context.tenant_id,
        advance_id,
        AdvanceStatus(data.status),
        user_id=context.user_id,
        comments=data.comments,
    )
