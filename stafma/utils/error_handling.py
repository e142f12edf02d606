"""
Error Handling Module for Stafma Payroll

This module provides centralized error handling with:
- Custom exception hierarchy
- Standardized error responses
- Error logging
- Payroll period, disbursement and validation errors
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging
logger = logging.getLogger("stafma.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_COMPENSATION = "INVALID_COMPENSATION"
    NO_EMPLOYEES_SELECTED = "NO_EMPLOYEES_SELECTED"

    # Authentication/Authorization Errors (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    TOKEN_INVALID = "TOKEN_INVALID"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    TENANT_NOT_FOUND = "TENANT_NOT_FOUND"
    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    ADVANCE_NOT_FOUND = "ADVANCE_NOT_FOUND"
    LEAVE_REQUEST_NOT_FOUND = "LEAVE_REQUEST_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    LEAVE_OVERLAP = "LEAVE_OVERLAP"

    # Business Logic Errors
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    PERIOD_ALREADY_PROCESSED = "PERIOD_ALREADY_PROCESSED"
    INVALID_PAYROLL_PERIOD = "INVALID_PAYROLL_PERIOD"
    NO_ACTIVE_EMPLOYEES = "NO_ACTIVE_EMPLOYEES"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # External Service Errors (502/503)
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    BANK_TRANSFER_ERROR = "BANK_TRANSFER_ERROR"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = datetime.utcnow()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() + "Z",
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details,
            field=field,
        )


class InvalidAmountException(ValidationException):
    """Amount is missing, zero or negative"""

    def __init__(self, amount: Any = None, field: str = "amount", message: Optional[str] = None):
        super().__init__(
            message=message or "Invalid amount",
            field=field,
            code=ErrorCode.INVALID_AMOUNT,
            details={"provided_amount": str(amount)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class InvalidDateRangeException(ValidationException):
    """Start date falls after end date"""

    def __init__(self, start_date: date, end_date: date):
        super().__init__(
            message="End date must be after start date",
            field="end_date",
            code=ErrorCode.INVALID_DATE_RANGE,
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NoEmployeesSelectedException(ValidationException):
    """Empty employee selection"""

    def __init__(self):
        super().__init__(
            message="No employees selected",
            field="employee_ids",
            code=ErrorCode.NO_EMPLOYEES_SELECTED,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class InvalidCompensationException(ValidationException):
    """Compensation structure cannot be used for payroll"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            field=field,
            code=ErrorCode.INVALID_COMPENSATION,
        )


# ============================================================================
# Authentication/Authorization Exceptions
# ============================================================================

class AuthenticationException(AppException):
    """Missing or unreadable credentials"""

    def __init__(self, message: str = "Could not validate credentials", code: ErrorCode = ErrorCode.UNAUTHORIZED):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class InsufficientPermissionsException(AppException):
    """Authenticated caller lacks the required role"""

    def __init__(self, required_role: str):
        super().__init__(
            code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"This operation requires the '{required_role}' role",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"required_role": required_role},
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class TenantNotFoundException(NotFoundException):
    """Tenant not found"""

    def __init__(self, tenant_id: Union[str, UUID]):
        super().__init__(
            resource_type="Business",
            resource_id=tenant_id,
            code=ErrorCode.TENANT_NOT_FOUND,
        )


class EmployeeNotFoundException(NotFoundException):
    """Employee not found (or not owned by the caller's tenant)"""

    def __init__(self, employee_id: Union[str, UUID]):
        super().__init__(
            resource_type="Employee",
            resource_id=employee_id,
            code=ErrorCode.EMPLOYEE_NOT_FOUND,
        )


class TransactionNotFoundException(NotFoundException):
    """Transaction not found"""

    def __init__(self, reference: str):
        super().__init__(
            resource_type="Transaction",
            message=f"Transaction with reference '{reference}' not found",
            code=ErrorCode.TRANSACTION_NOT_FOUND,
        )


class AdvanceNotFoundException(NotFoundException):
    """Salary advance request not found"""

    def __init__(self, advance_id: Union[str, UUID]):
        super().__init__(
            resource_type="Salary advance request",
            resource_id=advance_id,
            code=ErrorCode.ADVANCE_NOT_FOUND,
        )


class LeaveRequestNotFoundException(NotFoundException):
    """Leave request not found"""

    def __init__(self, leave_id: Union[str, UUID]):
        super().__init__(
            resource_type="Leave request",
            resource_id=leave_id,
            code=ErrorCode.LEAVE_REQUEST_NOT_FOUND,
        )


class ConflictException(AppException):
    """Resource conflict exception"""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if resource_type:
            _details["resource_type"] = resource_type
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=_details,
        )


class DuplicateEntryException(ConflictException):
    """Duplicate entry exception"""

    def __init__(self, resource_type: str, field: str, value: str):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            resource_type=resource_type,
            code=ErrorCode.DUPLICATE_ENTRY,
            details={"field": field, "value": value},
        )


class LeaveOverlapException(ConflictException):
    """Leave request overlaps an existing non-rejected request"""

    def __init__(self, existing_id: UUID, start_date: date, end_date: date):
        super().__init__(
            message="There is already a leave request for these dates",
            resource_type="Leave request",
            code=ErrorCode.LEAVE_OVERLAP,
            details={
                "existing_leave_id": str(existing_id),
                "existing_start_date": start_date.isoformat(),
                "existing_end_date": end_date.isoformat(),
            },
        )


# ============================================================================
# Business Logic Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation exception"""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
    ):
        _details = details or {}
        if rule:
            _details["violated_rule"] = rule
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=_details,
        )


class PeriodInvalidException(BusinessRuleException):
    """
    Payroll period cannot be processed.

    ``reason`` is one of ``duplicate``, ``before_registration`` or ``future``;
    duplicates carry the date the period was first processed.
    """

    DUPLICATE = "duplicate"
    BEFORE_REGISTRATION = "before_registration"
    FUTURE = "future"

    def __init__(
        self,
        month: int,
        year: int,
        reason: str,
        processed_date: Optional[datetime] = None,
    ):
        self.month = month
        self.year = year
        self.reason = reason
        self.processed_date = processed_date

        details: Dict[str, Any] = {"month": month, "year": year, "reason": reason}
        if reason == self.DUPLICATE:
            message = (
                f"Payroll for {month}/{year} has already been processed. "
                "Cannot process multiple times."
            )
            code = ErrorCode.PERIOD_ALREADY_PROCESSED
            if processed_date is not None:
                details["processed_date"] = processed_date.isoformat()
        elif reason == self.BEFORE_REGISTRATION:
            message = (
                "Cannot process payroll for this period. You can only process "
                "payroll from your registration month onwards."
            )
            code = ErrorCode.INVALID_PAYROLL_PERIOD
        else:
            message = f"Cannot process payroll for {month}/{year}: the period is in the future."
            code = ErrorCode.INVALID_PAYROLL_PERIOD

        super().__init__(
            message=message,
            rule="PAYROLL_PERIOD_ELIGIBLE",
            code=code,
            details=details,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NoActiveEmployeesException(BusinessRuleException):
    """Tenant has no active employees to pay"""

    def __init__(self):
        super().__init__(
            message="No active employees found",
            rule="ACTIVE_EMPLOYEES_REQUIRED",
            code=ErrorCode.NO_ACTIVE_EMPLOYEES,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Requested status change is not allowed from the current status"""

    def __init__(self, resource_type: str, current: str, requested: str):
        super().__init__(
            message=f"{resource_type} cannot move from '{current}' to '{requested}'",
            rule="STATUS_TRANSITION",
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            details={"current_status": current, "requested_status": requested},
        )


# ============================================================================
# External Service Exceptions
# ============================================================================

class ExternalServiceException(AppException):
    """External service error"""

    def __init__(
        self,
        service_name: str,
        message: str,
        code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"service": service_name},
            original_error=original_error,
        )


class BankTransferException(ExternalServiceException):
    """Bank transfer gateway error"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            service_name="Bank transfer gateway",
            message=f"Bank transfer error: {message}",
            code=ErrorCode.BANK_TRANSFER_ERROR,
            original_error=original_error,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error response"""
    content = {
        "detail": {
            "code": code.value,
            "message": message,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
    }
    if field:
        content["detail"]["field"] = field
    if details:
        content["detail"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    logger.error(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={
            "code": exc.code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
        exc_info=exc.original_error,
    )

    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        field=exc.field,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException"""
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        409: ErrorCode.RESOURCE_CONFLICT,
        422: ErrorCode.VALIDATION_ERROR,
        500: ErrorCode.INTERNAL_ERROR,
        502: ErrorCode.EXTERNAL_SERVICE_ERROR,
    }

    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        code=error_code,
        message=message,
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy errors"""
    error_message = "A database error occurred"
    error_code = ErrorCode.DATABASE_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, IntegrityError):
        error_message = "Data integrity constraint violated"
        error_code = ErrorCode.DATA_INTEGRITY_ERROR
        error_str = str(exc.orig).lower() if exc.orig else ""
        if "unique" in error_str or "duplicate" in error_str:
            error_message = "A record with this value already exists"
            error_code = ErrorCode.DUPLICATE_ENTRY
            status_code = status.HTTP_409_CONFLICT
        elif "foreign key" in error_str:
            error_message = "Referenced record does not exist"
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, OperationalError):
        error_message = "Database operation failed"
        error_code = ErrorCode.CONNECTION_ERROR
    elif isinstance(exc, DataError):
        error_message = "Invalid data format for database"
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    logger.error(
        f"SQLAlchemyError: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=error_code,
        message=error_message,
        status_code=status_code,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
