"""
Stafma Payroll - Settings Tests
"""

import pytest
from pydantic import ValidationError

from stafma.config import Settings


class TestPayrollBypassPeriods:

    def test_default_is_empty(self):
        assert Settings().payroll_bypass_period_list == []

    def test_periods_are_normalized(self):
        settings = Settings(payroll_bypass_periods=" 2024-12, 2025-3 ,")

        assert settings.payroll_bypass_periods == "2024-12,2025-03"
        assert settings.payroll_bypass_period_list == [(2024, 12), (2025, 3)]

    @pytest.mark.parametrize("value", ["2024/12", "2024-13", "2024-00", "December 2024", "2024-12,24-1"])
    def test_malformed_period_fails_on_load(self, value):
        with pytest.raises(ValidationError) as exc_info:
            Settings(payroll_bypass_periods=value)

        assert "expected YYYY-MM" in str(exc_info.value)

    def test_malformed_environment_value(self, monkeypatch):
        monkeypatch.setenv("PAYROLL_BYPASS_PERIODS", "2024/12")

        with pytest.raises(ValidationError):
            Settings()
