from datetime import datetime
from types import SimpleNamespace

import pytest

from carwash.core.workflow import (
    apply_bonus_action, check_in_transition_allowed, validate_check_in_transition,
    validate_payment_request_transition,
)
from carwash.errors import ValidationError
from carwash.models.check_in import CheckInStatus
from carwash.models.finance import BonusStatus, PaymentRequestStatus

NOW = datetime(2024, 5, 1, 12, 0)


@pytest.mark.parametrize("current,new", [
    (CheckInStatus.PENDING, CheckInStatus.IN_PROGRESS),
    (CheckInStatus.PENDING, CheckInStatus.CANCELLED),
    (CheckInStatus.IN_PROGRESS, CheckInStatus.COMPLETED),
    (CheckInStatus.IN_PROGRESS, CheckInStatus.CANCELLED),
    (CheckInStatus.COMPLETED, CheckInStatus.PAID),
    (CheckInStatus.PAID, CheckInStatus.PAID),
])
def test_allowed_check_in_transitions(current, new):
    assert check_in_transition_allowed(current, new)


@pytest.mark.parametrize("current,new", [
    (CheckInStatus.PENDING, CheckInStatus.COMPLETED),
    (CheckInStatus.PENDING, CheckInStatus.PAID),
    (CheckInStatus.COMPLETED, CheckInStatus.CANCELLED),
    (CheckInStatus.PAID, CheckInStatus.PENDING),
    (CheckInStatus.CANCELLED, CheckInStatus.IN_PROGRESS),
])
def test_rejected_check_in_transitions(current, new):
    with pytest.raises(ValidationError):
        validate_check_in_transition(current, new)


def test_payment_request_transitions():
    validate_payment_request_transition(PaymentRequestStatus.PENDING, PaymentRequestStatus.APPROVED)
    validate_payment_request_transition(PaymentRequestStatus.APPROVED, PaymentRequestStatus.PAID)
    validate_payment_request_transition(PaymentRequestStatus.APPROVED, PaymentRequestStatus.REJECTED)
    with pytest.raises(ValidationError):
        validate_payment_request_transition(PaymentRequestStatus.PENDING, PaymentRequestStatus.PAID)
    with pytest.raises(ValidationError):
        validate_payment_request_transition(PaymentRequestStatus.PAID, PaymentRequestStatus.PENDING)


def bonus(status=BonusStatus.PENDING):
    return SimpleNamespace(status=status, approved_by=None, approved_at=None, paid_at=None)


def test_bonus_approve_then_pay():
    b = bonus()
    apply_bonus_action(b, "approve", 7, NOW)
    assert b.status == BonusStatus.APPROVED
    assert b.approved_by == 7
    assert b.approved_at == NOW

    apply_bonus_action(b, "pay", None, NOW)
    assert b.status == BonusStatus.PAID
    assert b.paid_at == NOW


def test_bonus_approve_requires_approver():
    with pytest.raises(ValidationError, match="approved_by"):
        apply_bonus_action(bonus(), "approve", None, NOW)


def test_bonus_cannot_be_paid_before_approval():
    with pytest.raises(ValidationError, match="Only approved"):
        apply_bonus_action(bonus(), "pay", None, NOW)


def test_bonus_reject_only_from_pending():
    b = bonus()
    apply_bonus_action(b, "reject", None, NOW)
    assert b.status == BonusStatus.REJECTED
    with pytest.raises(ValidationError):
        apply_bonus_action(bonus(BonusStatus.APPROVED), "reject", None, NOW)


def test_bonus_unknown_action():
    with pytest.raises(ValidationError, match="Invalid action"):
        apply_bonus_action(bonus(), "refund", None, NOW)
