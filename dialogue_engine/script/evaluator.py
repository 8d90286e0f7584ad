"""
Condition evaluation against a ContextStore
"""

import logging
from typing import Any, Iterable, Optional

from ..state.store import MISSING, ContextStore
from .model import (
    Check,
    Comparison,
    Condition,
    ContextRef,
    FlagRef,
    Literal,
    MalformedCondition,
    Operand,
    QuestRef,
    Value,
)
from .parser import parse_condition, parse_number

logger = logging.getLogger(__name__)

_NUMBER_TYPES = (int, float)


def resolve_operand(operand: Operand, store: ContextStore) -> Any:
    """
    Resolve a comparison operand to a concrete value.

    Flags always resolve to a bool (missing flags are False). Context paths
    and quests resolve to MISSING when absent.
    """
    if isinstance(operand, FlagRef):
        return store.get_flag(operand.key)
    if isinstance(operand, ContextRef):
        return store.get_context(operand.path)
    if isinstance(operand, QuestRef):
        record = store.get_quest_status(operand.key)
        return record.status.value if record else MISSING
    if isinstance(operand, Value):
        return operand.value
    return MISSING


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, _NUMBER_TYPES):
        return value
    if isinstance(value, str):
        return parse_number(value.strip())
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Equality that treats numeric strings and numbers as comparable"""
    if left == right:
        return True
    if isinstance(left, str) != isinstance(right, str):
        left_number, right_number = _as_number(left), _as_number(right)
        if left_number is not None and right_number is not None:
            return left_number == right_number
    return False


def compare(left: Any, operator: str, right: Any) -> bool:
    """Apply a comparison operator; incomparable values never satisfy an ordering"""
    if operator in ("=", "==", "equals"):
        return loose_equals(left, right)
    if operator in ("!=", "not_equals"):
        return not loose_equals(left, right)

    left_number, right_number = _as_number(left), _as_number(right)
    if left_number is not None and right_number is not None:
        left, right = left_number, right_number
    elif not (isinstance(left, str) and isinstance(right, str)):
        return False

    if operator in (">", "greater"):
        return left > right
    if operator in ("<", "less"):
        return left < right
    if operator in (">=", "greater_equals"):
        return left >= right
    if operator in ("<=", "less_equals"):
        return left <= right
    return False


class ConditionEvaluator:
    """Evaluates parsed conditions; all conditions in a list must hold"""

    def evaluate(self, condition: Any, store: ContextStore) -> bool:
        """
        Evaluate a single condition.

        Args:
            condition: A parsed Condition, or a raw string/object which is parsed first
            store: The state to read from

        Returns:
            True if the condition holds. Malformed conditions are always False.
        """
        if not isinstance(condition, _CONDITION_TYPES):
            condition = parse_condition(condition)

        if isinstance(condition, Literal):
            return condition.value
        if isinstance(condition, FlagRef):
            return store.get_flag(condition.key)
        if isinstance(condition, ContextRef):
            return bool(store.get_context(condition.path))
        if isinstance(condition, QuestRef):
            return store.get_quest_status(condition.key) is not None
        if isinstance(condition, Comparison):
            return self._evaluate_comparison(condition, store)
        if isinstance(condition, Check):
            return self._evaluate_check(condition, store)
        if isinstance(condition, MalformedCondition):
            logger.debug("Malformed condition %r evaluates False (%s)", condition.source, condition.reason)
        return False

    def evaluate_all(self, conditions: Optional[Iterable[Any]], store: ContextStore) -> bool:
        """True if every condition holds; an empty list always passes"""
        return all(self.evaluate(condition, store) for condition in conditions or ())

    def _evaluate_comparison(self, condition: Comparison, store: ContextStore) -> bool:
        left = resolve_operand(condition.left, store)
        right = resolve_operand(condition.right, store)
        if left is MISSING or right is MISSING:
            return False
        return compare(left, condition.operator, right)

    def _evaluate_check(self, condition: Check, store: ContextStore) -> bool:
        if condition.namespace == "flag":
            actual = store.flags[condition.key] if store.has_flag(condition.key) else MISSING
        elif condition.namespace == "context":
            actual = store.get_context(condition.key)
        else:
            record = store.get_quest_status(condition.key)
            actual = record.status.value if record else MISSING

        if actual is MISSING:
            return False

        if condition.operator == "has":
            return isinstance(actual, (list, tuple)) and condition.value in actual
        return compare(actual, condition.operator, condition.value)


_CONDITION_TYPES = (FlagRef, ContextRef, QuestRef, Comparison, Check, Literal, MalformedCondition)

_default_evaluator = ConditionEvaluator()


def evaluate(condition: Any, store: ContextStore) -> bool:
    return _default_evaluator.evaluate(condition, store)


def evaluate_all(conditions: Optional[Iterable[Any]], store: ContextStore) -> bool:
    return _default_evaluator.evaluate_all(conditions, store)
