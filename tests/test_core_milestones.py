from types import SimpleNamespace

import pytest

from carwash.core.milestones import (
    CustomerStats, achieved_value, check_condition, qualifying_milestones, validate_condition,
)
from carwash.errors import ValidationError
from carwash.models.milestone import MilestoneType


def milestone(id, type, operator, value, is_active=True):
    return SimpleNamespace(
        id=id, type=type, condition={"operator": operator, "value": value}, is_active=is_active,
    )


@pytest.mark.parametrize("value,operator,target,expected", [
    (10, ">=", 10, True),
    (9, ">=", 10, False),
    (5, "<=", 5, True),
    (5, "=", 5, True),
    (6, ">", 5, True),
    (4, "<", 5, True),
    (4, "!=", 5, False),
])
def test_check_condition(value, operator, target, expected):
    assert check_condition(value, {"operator": operator, "value": target}) is expected


@pytest.mark.parametrize("condition", [
    None,
    {"operator": ">="},
    {"operator": ">=", "value": "ten"},
    {"operator": ">=", "value": True},
    {"operator": "~", "value": 3},
])
def test_validate_condition_rejects(condition):
    with pytest.raises(ValidationError):
        validate_condition(condition)


def test_achieved_value_by_type():
    stats = CustomerStats(visits=4, spent=20000.0)
    assert achieved_value(milestone(1, MilestoneType.VISITS, ">=", 1), stats) == 4
    assert achieved_value(milestone(2, MilestoneType.SPENDING, ">=", 1), stats) == 20000.0


def test_qualifying_milestones_skips_inactive_and_achieved():
    stats = CustomerStats(visits=10, spent=50000.0)
    milestones = [
        milestone(1, MilestoneType.VISITS, ">=", 10),
        milestone(2, MilestoneType.SPENDING, ">=", 100000),
        milestone(3, MilestoneType.VISITS, ">=", 5, is_active=False),
        milestone(4, MilestoneType.SPENDING, ">", 40000),
    ]
    result = qualifying_milestones(milestones, stats, already_achieved={4})
    assert [(m.id, value) for m, value in result] == [(1, 10)]
