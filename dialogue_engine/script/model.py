"""
Condition and effect syntax trees.

Both authoring forms (short strings such as "flag.met_before" and structured
objects such as {"type": "flag", "key": "met_before"}) compile to these
classes. The evaluator and effect applier only ever see these.
"""

from dataclasses import dataclass
from typing import Any, Union

COMPARISON_OPERATORS = (">=", "<=", "!=", "==", ">", "<", "=")

# Named operators used by structured conditions, with their symbolic aliases
CHECK_OPERATORS = {
    "equals": "equals",
    "==": "equals",
    "=": "equals",
    "not_equals": "not_equals",
    "!=": "not_equals",
    "greater": "greater",
    ">": "greater",
    "less": "less",
    "<": "less",
    "greater_equals": "greater_equals",
    ">=": "greater_equals",
    "less_equals": "less_equals",
    "<=": "less_equals",
    "has": "has",
}

NAMESPACES = ("flag", "context", "quest")
CONTEXT_OPS = ("set", "add", "subtract")
QUEST_OPS = ("start", "complete", "fail")


# Conditions


@dataclass(frozen=True)
class FlagRef:
    key: str


@dataclass(frozen=True)
class ContextRef:
    path: str


@dataclass(frozen=True)
class QuestRef:
    key: str


@dataclass(frozen=True)
class Value:
    """A literal comparison operand (number, bool or opaque string)"""

    value: Any


Operand = Union[FlagRef, ContextRef, QuestRef, Value]


@dataclass(frozen=True)
class Comparison:
    left: Operand
    operator: str
    right: Operand


@dataclass(frozen=True)
class Check:
    """Structured condition: resolve key in a namespace, then apply a named operator"""

    namespace: str
    key: str
    operator: str
    value: Any = None


@dataclass(frozen=True)
class Literal:
    value: bool


@dataclass(frozen=True)
class MalformedCondition:
    """A condition that could not be parsed; always evaluates False"""

    source: Any
    reason: str


Condition = Union[FlagRef, ContextRef, QuestRef, Comparison, Check, Literal, MalformedCondition]


# Effects


@dataclass(frozen=True)
class SetFlag:
    key: str
    value: bool = True


@dataclass(frozen=True)
class ToggleFlag:
    key: str


@dataclass(frozen=True)
class ContextMutate:
    """Write to a context path; value is resolved at apply time"""

    path: str
    op: str
    value: Operand


@dataclass(frozen=True)
class QuestTransition:
    key: str
    op: str


@dataclass(frozen=True)
class MalformedEffect:
    """An effect that could not be parsed; applying it does nothing"""

    source: Any
    reason: str


Effect = Union[SetFlag, ToggleFlag, ContextMutate, QuestTransition, MalformedEffect]
