"""
Stafma Payroll - Statutory Deduction Policy

Pure functions mapping a monthly gross salary to statutory deductions:

1. PAYE (income tax)
   - Flat bracket lookup: the first bracket whose ceiling covers the gross
     salary applies its rate to the ENTIRE gross amount.
   - This is a deliberate simplification, not marginal/progressive tax.
   - Gross at or below 24,000: 0%
   - 24,001 - 32,333: 10%
   - 32,334 - 50,000: 15%
   - Above 50,000: 20%

2. NHIF (health insurance)
   - Flat amount per salary band, fixed ceiling amount above the top band.

3. NSSF (pension)
   - 6% of gross, capped at 1,080 per month.

All three functions are total over non-negative gross salaries and never
return a negative amount. A different jurisdiction is supported by building
another DeductionPolicy; nothing outside this module knows the tables.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from stafma.config import settings


CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(amount: Decimal) -> Decimal:
    """Round an amount to cents."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TaxBracket:
    """Tax bracket: applies ``rate`` to the whole gross when gross <= ``ceiling``."""
    ceiling: Optional[Decimal]  # None = no upper limit
    rate: Decimal

    def covers(self, gross: Decimal) -> bool:
        return self.ceiling is None or gross <= self.ceiling


@dataclass(frozen=True)
class HealthBand:
    """Flat health insurance contribution for gross <= ``ceiling``."""
    ceiling: Decimal
    amount: Decimal


# Evaluated top-down; first matching ceiling wins
DEFAULT_TAX_BRACKETS = (
    TaxBracket(Decimal("24000"), Decimal("0")),
    TaxBracket(Decimal("32333"), Decimal("0.10")),
    TaxBracket(Decimal("50000"), Decimal("0.15")),
    TaxBracket(None, Decimal("0.20")),
)

DEFAULT_HEALTH_BANDS = (
    HealthBand(Decimal("5999"), Decimal("150")),
    HealthBand(Decimal("7999"), Decimal("300")),
    HealthBand(Decimal("11999"), Decimal("400")),
    HealthBand(Decimal("14999"), Decimal("500")),
)
DEFAULT_HEALTH_CEILING_AMOUNT = Decimal("600")


@dataclass(frozen=True)
class DeductionPolicy:
    """
    Statutory deduction tables.

    Brackets and bands must be ordered by ascending ceiling.
    """
    tax_brackets: Sequence[TaxBracket] = field(default=DEFAULT_TAX_BRACKETS)
    health_bands: Sequence[HealthBand] = field(default=DEFAULT_HEALTH_BANDS)
    health_ceiling_amount: Decimal = DEFAULT_HEALTH_CEILING_AMOUNT
    pension_rate: Decimal = Decimal("0.06")
    pension_cap: Decimal = Decimal("1080")

    def paye(self, gross: Decimal) -> Decimal:
        return calculate_paye(gross, self)

    def nhif(self, gross: Decimal) -> Decimal:
        return calculate_nhif(gross, self)

    def nssf(self, gross: Decimal) -> Decimal:
        return calculate_nssf(gross, self)


def default_policy() -> DeductionPolicy:
    """Policy with the configured pension rate and cap."""
    return DeductionPolicy(
        pension_rate=Decimal(settings.pension_rate),
        pension_cap=Decimal(settings.pension_cap),
    )


def _non_negative(gross: Decimal) -> Decimal:
    gross = Decimal(gross)
    if gross < 0:
        return ZERO
    return gross


def calculate_paye(gross: Decimal, policy: Optional[DeductionPolicy] = None) -> Decimal:
    """
    Income tax for a monthly gross salary.

    The matching bracket's rate is applied to the full gross amount.
    """
    policy = policy or default_policy()
    gross = _non_negative(gross)
    for bracket in policy.tax_brackets:
        if bracket.covers(gross):
            return to_money(gross * bracket.rate)
    # Table without an open-ended top bracket: use the last rate
    return to_money(gross * policy.tax_brackets[-1].rate)


def calculate_nhif(gross: Decimal, policy: Optional[DeductionPolicy] = None) -> Decimal:
    """Health insurance contribution for a monthly gross salary."""
    policy = policy or default_policy()
    gross = _non_negative(gross)
    for band in policy.health_bands:
        if gross <= band.ceiling:
            return to_money(band.amount)
    return to_money(policy.health_ceiling_amount)


def calculate_nssf(gross: Decimal, policy: Optional[DeductionPolicy] = None) -> Decimal:
    """Pension contribution: min(gross * rate, cap)."""
    policy = policy or default_policy()
    gross = _non_negative(gross)
    return to_money(min(gross * policy.pension_rate, policy.pension_cap))
