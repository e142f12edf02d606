"""
Stafma Payroll - Payroll Calculator

Turns an employee's compensation structure into a payroll line:

    allowances       = housing + transport + medical + other
    gross            = basic + allowances
    paye, nhif, nssf = statutory deductions on gross
    other deductions = loans + other
    total deductions = paye + nhif + nssf + other deductions
    net              = gross - total deductions

Net salary may be negative when deductions exceed gross; that is returned
as-is and left to the caller. No side effects: persistence belongs to the
payroll service.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from stafma.services.deduction_policy import DeductionPolicy, default_policy, to_money
from stafma.utils.error_handling import InvalidCompensationException


@dataclass(frozen=True)
class Allowances:
    housing: Decimal = Decimal("0")
    transport: Decimal = Decimal("0")
    medical: Decimal = Decimal("0")
    other: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.housing + self.transport + self.medical + self.other


@dataclass(frozen=True)
class EmployeeDeductions:
    loans: Decimal = Decimal("0")
    other: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.loans + self.other


@dataclass(frozen=True)
class CompensationStructure:
    """Monthly compensation of one employee."""
    basic: Decimal
    allowances: Allowances = field(default_factory=Allowances)
    deductions: EmployeeDeductions = field(default_factory=EmployeeDeductions)

    def validate(self) -> None:
        """Raise InvalidCompensationException for unusable structures."""
        if self.basic is None or Decimal(self.basic) <= 0:
            raise InvalidCompensationException(
                f"Basic salary must be positive, got {self.basic}", field="basic",
            )
        for name in ("housing", "transport", "medical", "other"):
            value = getattr(self.allowances, name)
            if value is None or Decimal(value) < 0:
                raise InvalidCompensationException(
                    f"{name.capitalize()} allowance must not be negative, got {value}",
                    field=f"allowances.{name}",
                )
        for name in ("loans", "other"):
            value = getattr(self.deductions, name)
            if value is None or Decimal(value) < 0:
                raise InvalidCompensationException(
                    f"{name.capitalize()} deduction must not be negative, got {value}",
                    field=f"deductions.{name}",
                )


@dataclass(frozen=True)
class PayrollLine:
    """Computed payroll figures for one employee and period."""
    basic_salary: Decimal
    allowances: Decimal
    gross_salary: Decimal
    paye: Decimal
    nhif: Decimal
    nssf: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal

    def as_record_fields(self) -> Dict[str, Any]:
        """Column values for a PayrollRecord."""
        return {
            "basic_salary": self.basic_salary,
            "allowances": self.allowances,
            "gross_salary": self.gross_salary,
            "paye": self.paye,
            "nhif": self.nhif,
            "nssf": self.nssf,
            "other_deductions": self.other_deductions,
            "total_deductions": self.total_deductions,
            "net_salary": self.net_salary,
        }


class PayrollCalculator:
    """Stateless payroll line calculator."""

    def __init__(self, policy: Optional[DeductionPolicy] = None):
        self.policy = policy or default_policy()

    def calculate(self, compensation: CompensationStructure) -> PayrollLine:
        compensation.validate()

        basic = to_money(compensation.basic)
        allowances = to_money(compensation.allowances.total)
        gross = basic + allowances

        paye = self.policy.paye(gross)
        nhif = self.policy.nhif(gross)
        nssf = self.policy.nssf(gross)
        other_deductions = to_money(compensation.deductions.total)
        total_deductions = paye + nhif + nssf + other_deductions

        return PayrollLine(
            basic_salary=basic,
            allowances=allowances,
            gross_salary=gross,
            paye=paye,
            nhif=nhif,
            nssf=nssf,
            other_deductions=other_deductions,
            total_deductions=total_deductions,
            net_salary=gross - total_deductions,
        )
