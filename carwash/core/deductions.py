"""
Washer deductions and payment request eligibility.
"""
from dataclasses import dataclass, field
from typing import Iterable, List

from carwash.errors import ValidationError

MATERIAL_TOOL_TYPES = frozenset({"material", "supply"})


@dataclass
class UnreturnedItem:
    id: int
    tool_name: str
    tool_type: str
    quantity: int
    amount: float
    total_value: float
    assigned_date: object
    notes: str = None


@dataclass
class Deductions:
    material_deductions: float = 0.0
    tool_deductions: float = 0.0
    items: List[UnreturnedItem] = field(default_factory=list)

    @property
    def total_deductions(self) -> float:
        return self.material_deductions + self.tool_deductions

    @property
    def has_unreturned_tools(self) -> bool:
        return bool(self.items)


def calculate_deductions(washer_tools: Iterable) -> Deductions:
    """
    Value every unreturned tool assignment at ``amount * quantity``.

    Material and supply types count as material deductions; everything
    else is a tool deduction. Returned assignments are ignored.
    """
    result = Deductions()
    for tool in washer_tools:
        if tool.is_returned:
            continue
        quantity = tool.quantity or 1
        total_value = (tool.amount or 0.0) * quantity
        result.items.append(UnreturnedItem(
            id=tool.id,
            tool_name=tool.tool_name,
            tool_type=tool.tool_type,
            quantity=tool.quantity,
            amount=tool.amount or 0.0,
            total_value=total_value,
            assigned_date=tool.assigned_date,
            notes=tool.notes,
        ))
        if tool.tool_type in MATERIAL_TOOL_TYPES:
            result.material_deductions += total_value
        else:
            result.tool_deductions += total_value
    return result


def validate_payment_request(
    current_earnings: float,
    amount: float,
    material_deductions: float,
    tool_deductions: float,
    is_advance: bool,
    advance_limit: float,
) -> None:
    """
    Check a new payment request against the washer's balance.

    Advances may only be drawn by washers whose earnings are at or below
    the advance limit, and never for more than the limit. Regular
    requests plus deductions must be covered by current earnings.

    Raises:
        ValidationError: when the request is not allowed
    """
    if amount <= 0:
        raise ValidationError("Requested amount must be greater than 0")
    if material_deductions < 0 or tool_deductions < 0:
        raise ValidationError("Deductions cannot be negative")

    if is_advance:
        if current_earnings > advance_limit:
            raise ValidationError(
                f"Advance payments can only be requested when total earnings is "
                f"{advance_limit:,.0f} or less"
            )
        if amount > advance_limit:
            raise ValidationError(f"Advance payment cannot exceed {advance_limit:,.0f}")
        return

    total_requested = amount + material_deductions + tool_deductions
    if total_requested > current_earnings:
        raise ValidationError(
            f"Requested amount ({total_requested:,.2f}) exceeds available earnings "
            f"({current_earnings:,.2f})"
        )


def payout_total(payment_request) -> float:
    """Amount removed from the washer's balance when a request is paid."""
    return (
        (payment_request.amount or 0.0)
        + (payment_request.material_deductions or 0.0)
        + (payment_request.tool_deductions or 0.0)
    )
