"""
Parsers for the condition and effect mini-languages.

Two authoring forms are accepted:

String form (short, author friendly):

    flag.met_before               flag lookup
    context.player.level          truthiness of a nested context value
    quest.lost_ring               quest has been started
    context.level>=5              two-operand comparison
    flag.met_before==false
    set_flag.hero_warned          effects
    unset_flag.hero_warned
    context.gold=10

Object form (structured, machine friendly):

    {"type": "flag", "key": "met_before", "operator": "equals", "value": true}
    {"type": "context", "key": "gold", "action": "add", "value": 5}
    {"type": "quest", "key": "lost_ring", "action": "start"}

Both compile to the classes in dialogue_engine.script.model.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from .model import (
    CHECK_OPERATORS,
    COMPARISON_OPERATORS,
    CONTEXT_OPS,
    NAMESPACES,
    QUEST_OPS,
    Check,
    Comparison,
    Condition,
    ContextMutate,
    ContextRef,
    Effect,
    FlagRef,
    Literal,
    MalformedCondition,
    MalformedEffect,
    Operand,
    QuestRef,
    QuestTransition,
    SetFlag,
    ToggleFlag,
    Value,
)

logger = logging.getLogger(__name__)

FLAG_PREFIX = "flag."
CONTEXT_PREFIX = "context."
QUEST_PREFIX = "quest."

# String effect prefix -> (effect kind, argument)
FLAG_EFFECT_PREFIXES = {
    "set_flag.": True,
    "unset_flag.": False,
}
QUEST_EFFECT_PREFIXES = {
    "start_quest.": "start",
    "complete_quest.": "complete",
    "fail_quest.": "fail",
}
TOGGLE_FLAG_PREFIX = "toggle_flag."


def parse_number(text: str) -> Optional[float]:
    """Parse an int or float literal, returning None if text is not numeric"""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    # nan/inf parse as floats but are never what an author meant
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def parse_operand(text: str) -> Operand:
    """Resolve one side of a comparison"""
    if text.startswith(CONTEXT_PREFIX):
        return ContextRef(text[len(CONTEXT_PREFIX):])
    if text.startswith(FLAG_PREFIX):
        return FlagRef(text[len(FLAG_PREFIX):])
    if text.startswith(QUEST_PREFIX):
        return QuestRef(text[len(QUEST_PREFIX):])
    if text == "true":
        return Value(True)
    if text == "false":
        return Value(False)
    number = parse_number(text)
    if number is not None:
        return Value(number)
    return Value(text)


def parse_effect_value(text: str) -> Operand:
    """
    Resolve the right-hand side of a context assignment.

    Context and flag references copy the current value; anything else is
    stored as a number if it parses as one and as the raw string otherwise,
    so "context.door=false" stores the string "false".
    """
    if text.startswith(CONTEXT_PREFIX):
        return ContextRef(text[len(CONTEXT_PREFIX):])
    if text.startswith(FLAG_PREFIX):
        return FlagRef(text[len(FLAG_PREFIX):])
    number = parse_number(text)
    if number is not None:
        return Value(number)
    return Value(text)


def find_operator(text: str) -> Optional[str]:
    """
    Find the comparison operator in a condition string.

    Multi-character operators are tested first so that ">=" is never read
    as ">" followed by a stray "=".
    """
    for operator in COMPARISON_OPERATORS:
        if operator in text:
            return operator
    return None


class ScriptParser:
    """Compiles raw conditions and effects into syntax trees"""

    def parse_condition(self, raw: Any) -> Condition:
        """Parse a condition in either string or object form"""
        if isinstance(raw, bool):
            return Literal(raw)
        if isinstance(raw, str):
            return self._parse_string_condition(raw)
        if isinstance(raw, dict):
            return self._parse_object_condition(raw)
        return self._malformed_condition(raw, f"unsupported condition type {type(raw).__name__}")

    def parse_conditions(self, raw_list: Optional[List[Any]]) -> List[Condition]:
        return [self.parse_condition(raw) for raw in raw_list or []]

    def parse_effect(self, raw: Any) -> Effect:
        """Parse an effect in either string or object form"""
        if isinstance(raw, str):
            return self._parse_string_effect(raw)
        if isinstance(raw, dict):
            return self._parse_object_effect(raw)
        return self._malformed_effect(raw, f"unsupported effect type {type(raw).__name__}")

    def parse_effects(self, raw_list: Optional[List[Any]]) -> List[Effect]:
        return [self.parse_effect(raw) for raw in raw_list or []]

    # Conditions

    def _parse_string_condition(self, raw: str) -> Condition:
        text = raw.strip()
        if not text:
            return self._malformed_condition(raw, "empty condition")

        operator = find_operator(text)
        if operator is not None:
            left, _, right = text.partition(operator)
            left, right = left.strip(), right.strip()
            if not left or not right:
                return self._malformed_condition(raw, f"missing operand for '{operator}'")
            return Comparison(parse_operand(left), operator, parse_operand(right))

        if text.startswith(FLAG_PREFIX):
            return self._reference(raw, FlagRef, text[len(FLAG_PREFIX):])
        if text.startswith(CONTEXT_PREFIX):
            return self._reference(raw, ContextRef, text[len(CONTEXT_PREFIX):])
        if text.startswith(QUEST_PREFIX):
            return self._reference(raw, QuestRef, text[len(QUEST_PREFIX):])

        if text == "true":
            return Literal(True)
        if text == "false":
            return Literal(False)

        return self._malformed_condition(raw, "unrecognized condition")

    def _parse_object_condition(self, raw: Dict[str, Any]) -> Condition:
        namespace = raw.get("type")
        key = raw.get("key")

        if namespace not in NAMESPACES:
            return self._malformed_condition(raw, f"unknown condition type {namespace!r}")
        if not isinstance(key, str) or not key:
            return self._malformed_condition(raw, "missing key")

        operator = raw.get("operator")
        if operator is None:
            ref_type = {"flag": FlagRef, "context": ContextRef, "quest": QuestRef}[namespace]
            return ref_type(key)

        named = CHECK_OPERATORS.get(operator)
        if named is None:
            return self._malformed_condition(raw, f"unknown operator {operator!r}")
        return Check(namespace, key, named, raw.get("value"))

    def _reference(self, raw: str, ref_type, key: str) -> Condition:
        key = key.strip()
        if not key:
            return self._malformed_condition(raw, "empty reference")
        return ref_type(key)

    # Effects

    def _parse_string_effect(self, raw: str) -> Effect:
        text = raw.strip()

        for prefix, value in FLAG_EFFECT_PREFIXES.items():
            if text.startswith(prefix):
                key = text[len(prefix):].strip()
                if not key:
                    return self._malformed_effect(raw, "empty flag name")
                return SetFlag(key, value)

        if text.startswith(TOGGLE_FLAG_PREFIX):
            key = text[len(TOGGLE_FLAG_PREFIX):].strip()
            if not key:
                return self._malformed_effect(raw, "empty flag name")
            return ToggleFlag(key)

        for prefix, op in QUEST_EFFECT_PREFIXES.items():
            if text.startswith(prefix):
                key = text[len(prefix):].strip()
                if not key:
                    return self._malformed_effect(raw, "empty quest name")
                return QuestTransition(key, op)

        if text.startswith(CONTEXT_PREFIX):
            parts = text[len(CONTEXT_PREFIX):].split("=")
            if len(parts) != 2:
                return self._malformed_effect(raw, "expected context.<path>=<value>")
            path, value = parts[0].strip(), parts[1].strip()
            if not path:
                return self._malformed_effect(raw, "empty context path")
            return ContextMutate(path, "set", parse_effect_value(value))

        return self._malformed_effect(raw, "unrecognized effect")

    def _parse_object_effect(self, raw: Dict[str, Any]) -> Effect:
        namespace = raw.get("type")
        key = raw.get("key")
        action = raw.get("action")

        if namespace not in NAMESPACES:
            return self._malformed_effect(raw, f"unknown effect type {namespace!r}")
        if not isinstance(key, str) or not key:
            return self._malformed_effect(raw, "missing key")

        if namespace == "flag":
            if action == "set":
                return SetFlag(key, bool(raw.get("value", True)))
            if action == "unset":
                return SetFlag(key, False)
            if action == "toggle":
                return ToggleFlag(key)
        elif namespace == "context":
            if action in CONTEXT_OPS:
                return ContextMutate(key, action, Value(raw.get("value")))
        elif namespace == "quest":
            if action in QUEST_OPS:
                return QuestTransition(key, action)

        return self._malformed_effect(raw, f"unknown {namespace} action {action!r}")

    # Malformed input

    def _malformed_condition(self, raw: Any, reason: str) -> MalformedCondition:
        logger.warning("Malformed condition %r: %s", raw, reason)
        return MalformedCondition(raw, reason)

    def _malformed_effect(self, raw: Any, reason: str) -> MalformedEffect:
        logger.warning("Malformed effect %r: %s", raw, reason)
        return MalformedEffect(raw, reason)


_default_parser = ScriptParser()


def parse_condition(raw: Any) -> Condition:
    return _default_parser.parse_condition(raw)


def parse_conditions(raw_list: Optional[List[Any]]) -> List[Condition]:
    return _default_parser.parse_conditions(raw_list)


def parse_effect(raw: Any) -> Effect:
    return _default_parser.parse_effect(raw)


def parse_effects(raw_list: Optional[List[Any]]) -> List[Effect]:
    return _default_parser.parse_effects(raw_list)


def referenced_flags(condition: Condition) -> Tuple[str, ...]:
    """Flag names a condition reads (used by the validator)"""
    if isinstance(condition, FlagRef):
        return (condition.key,)
    if isinstance(condition, Check) and condition.namespace == "flag":
        return (condition.key,)
    if isinstance(condition, Comparison):
        return tuple(
            operand.key for operand in (condition.left, condition.right) if isinstance(operand, FlagRef)
        )
    return ()
