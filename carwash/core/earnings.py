"""
Commission split between washer and company for a check-in.

Each check-in line is priced when the car is checked in; the percentages
come from the catalogue service the line points at. A line whose service
has been deleted, or has no price, earns nothing.
"""
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class CommissionSplit:
    washer_income: float
    company_income: float

    @property
    def total(self) -> float:
        return self.washer_income + self.company_income


def line_split(price: Optional[float], washer_pct: Optional[float], company_pct: Optional[float]) -> CommissionSplit:
    """Split one line's price by the service's commission percentages."""
    washer = price * washer_pct / 100 if price and washer_pct else 0.0
    company = price * company_pct / 100 if price and company_pct else 0.0
    return CommissionSplit(washer_income=washer, company_income=company)


def split_commission(lines: Iterable) -> CommissionSplit:
    """
    Sum the commission split over check-in lines.

    Args:
        lines: objects with ``price`` and ``service`` attributes, where
            ``service`` carries ``washer_commission_percentage`` and
            ``company_commission_percentage`` (or is None)
    """
    washer_total = 0.0
    company_total = 0.0
    for line in lines:
        service = line.service
        if service is None:
            continue
        split = line_split(
            line.price,
            service.washer_commission_percentage,
            service.company_commission_percentage,
        )
        washer_total += split.washer_income
        company_total += split.company_income
    return CommissionSplit(washer_income=round(washer_total, 2), company_income=round(company_total, 2))


def estimated_duration(lines: Iterable, default: int = 0) -> int:
    """Sum of line durations, or ``default`` when that sum is zero."""
    total = sum(line.duration or 0 for line in lines)
    return total or default


def validate_commission(washer_pct: float, company_pct: float) -> Optional[str]:
    """Return an error message when a commission split is invalid."""
    if not 0 <= washer_pct <= 100:
        return "Washer commission percentage must be between 0 and 100"
    if not 0 <= company_pct <= 100:
        return "Company commission percentage must be between 0 and 100"
    if abs(washer_pct + company_pct - 100) > 1e-9:
        return "Washer and company commission percentages must equal 100%"
    return None
