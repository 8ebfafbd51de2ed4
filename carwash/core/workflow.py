"""
Status transitions for check-ins, payment requests and bonuses.
"""
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from carwash.errors import ValidationError
from carwash.models.check_in import CheckInStatus
from carwash.models.finance import BonusStatus, PaymentRequestStatus

CHECK_IN_TRANSITIONS: Dict[CheckInStatus, FrozenSet[CheckInStatus]] = {
    CheckInStatus.PENDING: frozenset({CheckInStatus.IN_PROGRESS, CheckInStatus.CANCELLED}),
    CheckInStatus.IN_PROGRESS: frozenset({CheckInStatus.COMPLETED, CheckInStatus.CANCELLED}),
    CheckInStatus.COMPLETED: frozenset({CheckInStatus.PAID}),
    CheckInStatus.PAID: frozenset(),
    CheckInStatus.CANCELLED: frozenset(),
}

PAYMENT_REQUEST_TRANSITIONS: Dict[PaymentRequestStatus, FrozenSet[PaymentRequestStatus]] = {
    PaymentRequestStatus.PENDING: frozenset({PaymentRequestStatus.APPROVED, PaymentRequestStatus.REJECTED}),
    PaymentRequestStatus.APPROVED: frozenset({PaymentRequestStatus.PAID, PaymentRequestStatus.REJECTED}),
    PaymentRequestStatus.REJECTED: frozenset(),
    PaymentRequestStatus.PAID: frozenset(),
}


def check_in_transition_allowed(current: CheckInStatus, new: CheckInStatus) -> bool:
    """Re-sending the current status is a no-op and always allowed."""
    return current == new or new in CHECK_IN_TRANSITIONS[current]


def validate_check_in_transition(current: CheckInStatus, new: CheckInStatus) -> None:
    if not check_in_transition_allowed(current, new):
        raise ValidationError(
            f"Cannot change check-in status from {current.value} to {new.value}"
        )


def validate_payment_request_transition(current: PaymentRequestStatus, new: PaymentRequestStatus) -> None:
    if current == new:
        return
    if new not in PAYMENT_REQUEST_TRANSITIONS[current]:
        raise ValidationError(
            f"Cannot change payment request status from {current.value} to {new.value}"
        )


def apply_bonus_action(bonus, action: str, approved_by: Optional[int], now: datetime) -> None:
    """
    Apply an ``approve``, ``pay`` or ``reject`` action to a bonus in place.

    Raises:
        ValidationError: unknown action or action not allowed from the
            bonus's current status
    """
    if action == "approve":
        if approved_by is None:
            raise ValidationError("approved_by is required for approval")
        if bonus.status != BonusStatus.PENDING:
            raise ValidationError("Only pending bonuses can be approved")
        bonus.status = BonusStatus.APPROVED
        bonus.approved_by = approved_by
        bonus.approved_at = now
    elif action == "pay":
        if bonus.status != BonusStatus.APPROVED:
            raise ValidationError("Only approved bonuses can be paid")
        bonus.status = BonusStatus.PAID
        bonus.paid_at = now
    elif action == "reject":
        if bonus.status != BonusStatus.PENDING:
            raise ValidationError("Only pending bonuses can be rejected")
        bonus.status = BonusStatus.REJECTED
    else:
        raise ValidationError("Invalid action. Must be approve, pay, or reject")
