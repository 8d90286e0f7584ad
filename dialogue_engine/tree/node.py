"""
Dialogue node and choice classes
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..script.effects import apply_all
from ..script.evaluator import evaluate_all
from ..script.model import Condition, Effect
from ..script.parser import parse_conditions, parse_effects
from ..state.store import ContextStore

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass
class DialogChoice:
    """Represents a player choice leading out of a node"""

    text: str = ""
    goto: Optional[str] = None
    conditions: List[Any] = field(default_factory=list)
    effects: List[Any] = field(default_factory=list)
    priority: int = 0
    once: bool = False
    requirements: List[str] = field(default_factory=list)

    compiled_conditions: List[Condition] = field(init=False, repr=False, compare=False)
    compiled_effects: List[Effect] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.conditions = _as_list(self.conditions)
        self.effects = _as_list(self.effects)
        self.requirements = _as_list(self.requirements)
        self.compiled_conditions = parse_conditions(self.conditions)
        self.compiled_effects = parse_effects(self.effects)

    @property
    def requirement_text(self) -> Optional[str]:
        """Human readable requirements, e.g. for greyed-out menu entries"""
        return ", ".join(self.requirements) if self.requirements else None

    def can_choose(self, store: ContextStore) -> bool:
        return evaluate_all(self.compiled_conditions, store)

    def apply_effects(self, store: ContextStore):
        apply_all(self.compiled_effects, store)

    def is_terminal(self) -> bool:
        """Check if taking this choice ends the conversation"""
        return self.goto is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "text": self.text,
            "goto": self.goto,
            "conditions": list(self.conditions),
            "effects": list(self.effects),
            "priority": self.priority,
            "once": self.once,
            "requirements": list(self.requirements),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DialogChoice":
        return cls(
            text=data.get("text") or "",
            goto=data.get("goto") or None,
            conditions=data.get("conditions"),
            effects=data.get("effects"),
            priority=data.get("priority") or 0,
            once=bool(data.get("once", False)),
            requirements=data.get("requirements"),
        )


@dataclass
class DialogNode:
    """Represents one unit of presented dialogue"""

    id: str
    text: str = ""
    speaker: str = ""
    portrait: Optional[str] = None
    choices: List[DialogChoice] = field(default_factory=list)
    auto_advance: bool = False
    next_node: Optional[str] = None
    voice_line: Optional[str] = None
    conditions: List[Any] = field(default_factory=list)
    effects: List[Any] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    priority: int = 0

    compiled_conditions: List[Condition] = field(init=False, repr=False, compare=False)
    compiled_effects: List[Effect] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.conditions = _as_list(self.conditions)
        self.effects = _as_list(self.effects)
        self.tags = _as_list(self.tags)
        self.compiled_conditions = parse_conditions(self.conditions)
        self.compiled_effects = parse_effects(self.effects)

    def evaluate_conditions(self, store: ContextStore) -> bool:
        """Check whether the node itself is reachable; no conditions always passes"""
        return evaluate_all(self.compiled_conditions, store)

    def apply_effects(self, store: ContextStore):
        apply_all(self.compiled_effects, store)

    def get_available_choices(self, store: ContextStore) -> List[DialogChoice]:
        """Choices whose conditions currently hold (once-tracking is the session's job)"""
        return [choice for choice in self.choices if choice.can_choose(store)]

    def is_branch(self) -> bool:
        """Check if this node has choices (is a branching point)"""
        return len(self.choices) > 0

    def is_terminal(self) -> bool:
        """Check if this node is terminal (no choices and no next node)"""
        return len(self.choices) == 0 and self.next_node is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization (the id is the key in the tree)"""
        return {
            "text": self.text,
            "speaker": self.speaker,
            "portrait": self.portrait,
            "choices": [c.to_dict() for c in self.choices],
            "autoAdvance": self.auto_advance,
            "nextNode": self.next_node,
            "voiceLine": self.voice_line,
            "conditions": list(self.conditions),
            "effects": list(self.effects),
            "tags": list(self.tags),
            "priority": self.priority,
        }
