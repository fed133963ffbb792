"""Installment arithmetic for price quotes and financing calculations."""

from dataclasses import dataclass
from typing import Dict, Optional

INTEREST_RATES: Dict[int, float] = {1: 0.08, 2: 0.09, 3: 0.10, 4: 0.11, 5: 0.12}
DEFAULT_INTEREST_RATE = 0.10
DEFAULT_DOWN_PAYMENT_PERCENT = 20.0
QUOTE_DOWN_PAYMENT_PERCENTS = (20, 30, 40)
QUOTE_TENURE_YEARS = 3


def format_rupiah(amount: float) -> str:
    """Format an amount as Indonesian Rupiah, e.g. ``Rp 150.000.000``."""
    return "Rp " + f"{int(round(amount)):,}".replace(",", ".")


def annual_rate_for(tenure_years: int) -> float:
    return INTEREST_RATES.get(tenure_years, DEFAULT_INTEREST_RATE)


def monthly_installment(principal: float, annual_rate: float, months: int) -> float:
    """Amortized monthly payment for a fixed-rate loan."""
    if months <= 0:
        raise ValueError("months must be positive")
    if principal <= 0:
        return 0.0
    monthly_rate = annual_rate / 12
    if monthly_rate == 0:
        return principal / months
    growth = (1 + monthly_rate) ** months
    return principal * (monthly_rate * growth) / (growth - 1)


@dataclass(frozen=True)
class FinancingPlan:
    car_price: float
    down_payment: float
    loan_amount: float
    tenure_years: int
    annual_rate: float
    monthly_payment: float

    @property
    def months(self) -> int:
        return self.tenure_years * 12

    @property
    def down_payment_percent(self) -> float:
        return self.down_payment / self.car_price * 100

    @property
    def total_payment(self) -> float:
        return self.monthly_payment * self.months

    @property
    def total_interest(self) -> float:
        return self.total_payment - self.loan_amount


def plan_financing(
    car_price: float,
    tenure_years: int,
    down_payment: Optional[float] = None,
    down_payment_percent: Optional[float] = None,
) -> FinancingPlan:
    """Build a financing plan.

    The down payment is the explicit amount if given, else the percentage of the
    price, else 20% of the price.

    Raises:
        ValueError: If the price or tenure is not positive, or the down payment is
            negative or not below the price.
    """
    if car_price <= 0:
        raise ValueError("Car price must be greater than zero.")
    if tenure_years <= 0:
        raise ValueError("Tenure must be at least one year.")

    if down_payment:
        dp = float(down_payment)
    elif down_payment_percent:
        dp = car_price * down_payment_percent / 100
    else:
        dp = car_price * DEFAULT_DOWN_PAYMENT_PERCENT / 100

    if dp < 0 or dp >= car_price:
        raise ValueError("Down payment must be between zero and the car price.")

    rate = annual_rate_for(tenure_years)
    loan = car_price - dp
    return FinancingPlan(
        car_price=car_price,
        down_payment=dp,
        loan_amount=loan,
        tenure_years=tenure_years,
        annual_rate=rate,
        monthly_payment=monthly_installment(loan, rate, tenure_years * 12),
    )
