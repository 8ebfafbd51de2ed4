from datetime import datetime
from types import SimpleNamespace

import pytest

from carwash.core.deductions import calculate_deductions, payout_total, validate_payment_request
from carwash.errors import ValidationError


def assignment(id, tool_type, quantity, amount, is_returned=False):
    return SimpleNamespace(
        id=id,
        tool_name=f"tool-{id}",
        tool_type=tool_type,
        quantity=quantity,
        amount=amount,
        is_returned=is_returned,
        assigned_date=datetime(2024, 1, 1),
        notes=None,
    )


def test_calculate_deductions_splits_materials_and_tools():
    result = calculate_deductions([
        assignment(1, "material", 2, 500),
        assignment(2, "supply", 1, 300),
        assignment(3, "equipment", 1, 10000),
        assignment(4, "tool", 3, 1000, is_returned=True),
    ])
    assert result.material_deductions == 1300
    assert result.tool_deductions == 10000
    assert result.total_deductions == 11300
    assert result.has_unreturned_tools
    assert [item.id for item in result.items] == [1, 2, 3]
    assert result.items[0].total_value == 1000


def test_calculate_deductions_with_nothing_outstanding():
    result = calculate_deductions([assignment(1, "tool", 1, 500, is_returned=True)])
    assert result.total_deductions == 0
    assert not result.has_unreturned_tools


def test_regular_request_must_be_covered_by_earnings():
    validate_payment_request(5000, 4000, 500, 500, False, 2000)
    with pytest.raises(ValidationError, match="exceeds available earnings"):
        validate_payment_request(5000, 4500, 500, 500.01, False, 2000)


def test_advance_limits():
    validate_payment_request(1500, 2000, 0, 0, True, 2000)
    with pytest.raises(ValidationError, match="or less"):
        validate_payment_request(2500, 1000, 0, 0, True, 2000)
    with pytest.raises(ValidationError, match="cannot exceed"):
        validate_payment_request(0, 2500, 0, 0, True, 2000)


def test_amount_must_be_positive():
    with pytest.raises(ValidationError):
        validate_payment_request(5000, 0, 0, 0, False, 2000)


def test_payout_total_includes_deductions():
    pr = SimpleNamespace(amount=1000, material_deductions=200, tool_deductions=None)
    assert payout_total(pr) == 1200
