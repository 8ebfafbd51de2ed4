"""
Customer milestone evaluation.
"""
import operator
from dataclasses import dataclass
from typing import Iterable, List, Set

from carwash.errors import ValidationError
from carwash.models.milestone import MilestoneType

OPERATORS = {
    ">=": operator.ge,
    "<=": operator.le,
    "=": operator.eq,
    ">": operator.gt,
    "<": operator.lt,
}


def validate_condition(condition) -> None:
    if not isinstance(condition, dict) or "operator" not in condition or condition.get("value") is None:
        raise ValidationError("Invalid condition format")
    if not isinstance(condition["value"], (int, float)) or isinstance(condition["value"], bool):
        raise ValidationError("Condition value must be a number")
    if condition["operator"] not in OPERATORS:
        raise ValidationError(f"Unsupported operator {condition['operator']!r}")


def check_condition(value: float, condition: dict) -> bool:
    """Unknown operators never match."""
    compare = OPERATORS.get(condition.get("operator"))
    if compare is None:
        return False
    return compare(value, condition.get("value"))


@dataclass(frozen=True)
class CustomerStats:
    visits: int
    spent: float


def achieved_value(milestone, stats: CustomerStats) -> float:
    if milestone.type == MilestoneType.VISITS:
        return stats.visits
    return stats.spent


def qualifying_milestones(milestones: Iterable, stats: CustomerStats, already_achieved: Set[int]) -> List[tuple]:
    """
    Return ``(milestone, achieved_value)`` for every active milestone the
    customer now meets and has not achieved before.
    """
    result = []
    for milestone in milestones:
        if not milestone.is_active or milestone.id in already_achieved:
            continue
        value = achieved_value(milestone, stats)
        if check_condition(value, milestone.condition):
            result.append((milestone, value))
    return result
