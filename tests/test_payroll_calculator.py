"""
Stafma Payroll - Payroll Calculator Tests
"""

import pytest
from decimal import Decimal

from stafma.services.payroll_calculator import (
    Allowances,
    CompensationStructure,
    EmployeeDeductions,
    PayrollCalculator,
)
from stafma.utils.error_handling import InvalidCompensationException


class TestPayrollCalculator:
    """Gross, deductions and net for one employee."""

    def test_full_structure(self):
        compensation = CompensationStructure(
            basic=Decimal("50000"),
            allowances=Allowances(housing=Decimal("10000"), transport=Decimal("5000")),
        )

        line = PayrollCalculator().calculate(compensation)

        assert line.allowances == Decimal("15000.00")
        assert line.gross_salary == Decimal("65000.00")
        assert line.paye == Decimal("13000.00")
        assert line.nhif == Decimal("600.00")
        assert line.nssf == Decimal("1080.00")
        assert line.other_deductions == Decimal("0.00")
        assert line.total_deductions == Decimal("14680.00")
        assert line.net_salary == Decimal("50320.00")

    def test_basic_only(self):
        line = PayrollCalculator().calculate(CompensationStructure(basic=Decimal("20000")))

        assert line.gross_salary == Decimal("20000.00")
        assert line.paye == Decimal("0.00")
        assert line.nhif == Decimal("600.00")
        assert line.nssf == Decimal("1080.00")
        assert line.net_salary == Decimal("18320.00")

    def test_net_is_gross_minus_total_deductions(self):
        compensation = CompensationStructure(
            basic=Decimal("31000"),
            allowances=Allowances(medical=Decimal("1500.50"), other=Decimal("250")),
            deductions=EmployeeDeductions(loans=Decimal("2000"), other=Decimal("125.25")),
        )

        line = PayrollCalculator().calculate(compensation)

        assert line.total_deductions == line.paye + line.nhif + line.nssf + line.other_deductions
        assert line.net_salary == line.gross_salary - line.total_deductions
        assert line.other_deductions == Decimal("2125.25")

    def test_negative_net_is_returned_as_is(self):
        compensation = CompensationStructure(
            basic=Decimal("10000"),
            deductions=EmployeeDeductions(loans=Decimal("20000")),
        )

        line = PayrollCalculator().calculate(compensation)

        # 10,000 - (0 + 400 + 600 + 20,000)
        assert line.net_salary == Decimal("-11000.00")

    def test_record_fields(self):
        line = PayrollCalculator().calculate(CompensationStructure(basic=Decimal("20000")))
        fields = line.as_record_fields()

        assert set(fields) == {
            "basic_salary", "allowances", "gross_salary", "paye", "nhif", "nssf",
            "other_deductions", "total_deductions", "net_salary",
        }


class TestCompensationValidation:
    """Unusable structures are rejected before any arithmetic."""

    def test_zero_basic_rejected(self):
        with pytest.raises(InvalidCompensationException) as exc_info:
            PayrollCalculator().calculate(CompensationStructure(basic=Decimal("0")))

        assert exc_info.value.field == "basic"

    def test_negative_allowance_rejected(self):
        compensation = CompensationStructure(
            basic=Decimal("30000"),
            allowances=Allowances(housing=Decimal("-1")),
        )

        with pytest.raises(InvalidCompensationException) as exc_info:
            PayrollCalculator().calculate(compensation)

        assert exc_info.value.field == "allowances.housing"

    def test_missing_deduction_rejected(self):
        compensation = CompensationStructure(
            basic=Decimal("30000"),
            deductions=EmployeeDeductions(loans=None),
        )

        with pytest.raises(InvalidCompensationException):
            PayrollCalculator().calculate(compensation)
