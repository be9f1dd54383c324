"""Financial aggregation: monthly income, progressive tax and net income.

Only card payments (including online payments) are taxable. Tax is applied per
month with a two-bracket progressive scale.
"""

from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from salon.app.core.config import settings
from salon.app.schemas import PaymentMethod, Purchase, Record

MINIMUM_WAGE_LV = 780.0
TAX_RATE_LOW = 0.10
TAX_RATE_HIGH = 0.25


def compute_progressive_tax(
    amount: float,
    threshold: float = MINIMUM_WAGE_LV,
    low_rate: float = TAX_RATE_LOW,
    high_rate: float = TAX_RATE_HIGH,
) -> float:
    """Two-bracket progressive tax.

    Income up to ``threshold`` is taxed at ``low_rate``, the remainder at
    ``high_rate``.

    Raises:
        ValueError: if ``amount`` is negative
    """
    if amount < 0:
        raise ValueError(f"Taxable amount must not be negative: {amount}")
    if amount <= threshold:
        return amount * low_rate
    return threshold * low_rate + (amount - threshold) * high_rate


@dataclass
class MonthlySummary:
    month_key: str  # YYYY-MM
    cash: float = 0.0
    card: float = 0.0
    total: float = 0.0
    taxable_amount: float = 0.0
    tax_amount: float = 0.0
    expenses: float = 0.0
    net_income: float = 0.0

    @property
    def year(self) -> int:
        return int(self.month_key[:4])

    @property
    def month(self) -> int:
        return int(self.month_key[5:7])

    def to_dict(self) -> dict:
        data = asdict(self)
        data["year"] = self.year
        data["month"] = self.month
        return data


@dataclass
class FinancialTotals:
    cash: float = 0.0
    card: float = 0.0
    total: float = 0.0
    taxable_amount: float = 0.0
    tax_amount: float = 0.0
    expenses: float = 0.0
    net_income: float = 0.0


def _month_key(date_str: str) -> Optional[str]:
    if not date_str or len(date_str) < 7 or date_str[4] != "-":
        return None
    key = date_str[:7]
    try:
        year, month = int(key[:4]), int(key[5:7])
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return f"{year:04d}-{month:02d}"


def summarize_by_month(
    records: Iterable[Record],
    purchases: Iterable[Purchase] = (),
    threshold: Optional[float] = None,
    low_rate: Optional[float] = None,
    high_rate: Optional[float] = None,
) -> list[MonthlySummary]:
    """Group paid records by month and compute tax and net income.

    Purchases are only counted for months that have income, matching the
    dashboard the figures are shown in.
    """
    threshold = settings.tax_threshold if threshold is None else threshold
    low_rate = settings.tax_rate_low if low_rate is None else low_rate
    high_rate = settings.tax_rate_high if high_rate is None else high_rate

    grouped: dict[str, MonthlySummary] = {}

    for record in records:
        if not record.amount or record.amount <= 0:
            continue
        key = _month_key(record.date)
        if key is None:
            continue
        month = grouped.setdefault(key, MonthlySummary(month_key=key))
        month.total += record.amount
        if record.payment_method == PaymentMethod.CASH:
            month.cash += record.amount
        elif record.payment_method == PaymentMethod.CARD:
            month.card += record.amount
            month.taxable_amount += record.amount

    for purchase in purchases:
        key = _month_key(purchase.date)
        if key in grouped:
            grouped[key].expenses += purchase.amount

    for month in grouped.values():
        month.tax_amount = compute_progressive_tax(
            month.taxable_amount, threshold, low_rate, high_rate
        )
        month.net_income = month.total - month.tax_amount - month.expenses

    return sorted(grouped.values(), key=lambda m: m.month_key)


def filter_period(
    months: Iterable[MonthlySummary],
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> list[MonthlySummary]:
    """Keep months in the requested year and, optionally, a single month."""
    result = []
    for summary in months:
        if year is not None and summary.year != year:
            continue
        if year is not None and month is not None and summary.month != month:
            continue
        result.append(summary)
    return result


def total_of(months: Iterable[MonthlySummary]) -> FinancialTotals:
    totals = FinancialTotals()
    for m in months:
        totals.cash += m.cash
        totals.card += m.card
        totals.total += m.total
        totals.taxable_amount += m.taxable_amount
        totals.tax_amount += m.tax_amount
        totals.expenses += m.expenses
        totals.net_income += m.net_income
    return totals


def build_financial_report(
    records: Iterable[Record],
    purchases: Iterable[Purchase] = (),
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> dict:
    """Monthly breakdown, totals and the years/months available for filtering."""
    months = summarize_by_month(records, purchases)
    selected = filter_period(months, year, month)

    available_years = sorted({m.year for m in months}, reverse=True)
    available_months = (
        sorted({m.month for m in months if m.year == year}) if year is not None else []
    )

    return {
        "year": year,
        "month": month,
        "months": [m.to_dict() for m in selected],
        "totals": asdict(total_of(selected)),
        "available_years": available_years,
        "available_months": available_months,
    }
