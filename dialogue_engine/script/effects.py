"""
Effect application: mutate a ContextStore from parsed effects
"""

import logging
from typing import Any, Iterable, Optional

from ..state.store import MISSING, ContextStore, QuestStatus
from .evaluator import resolve_operand
from .model import (
    ContextMutate,
    Effect,
    MalformedEffect,
    QuestTransition,
    SetFlag,
    ToggleFlag,
)
from .parser import parse_effect, parse_number

logger = logging.getLogger(__name__)

QUEST_STATUS_BY_OP = {
    "start": QuestStatus.ACTIVE,
    "complete": QuestStatus.COMPLETED,
    "fail": QuestStatus.FAILED,
}


def _to_number(value: Any) -> float:
    """Numeric value for add/subtract; anything non-numeric counts as 0"""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        number = parse_number(value.strip())
        if number is not None:
            return number
    return 0


class EffectApplier:
    """Applies effects to a store. Unknown or malformed effects are ignored."""

    def apply(self, effect: Any, store: ContextStore):
        """Apply a parsed Effect, or a raw string/object which is parsed first"""
        if not isinstance(effect, _EFFECT_TYPES):
            effect = parse_effect(effect)

        if isinstance(effect, SetFlag):
            store.set_flag(effect.key, effect.value)
            logger.debug("Flag '%s' = %s", effect.key, effect.value)

        elif isinstance(effect, ToggleFlag):
            value = store.toggle_flag(effect.key)
            logger.debug("Flag '%s' toggled to %s", effect.key, value)

        elif isinstance(effect, ContextMutate):
            self._apply_context(effect, store)

        elif isinstance(effect, QuestTransition):
            store.set_quest_status(effect.key, QUEST_STATUS_BY_OP[effect.op])
            logger.debug("Quest '%s' -> %s", effect.key, effect.op)

        elif isinstance(effect, MalformedEffect):
            logger.debug("Skipping malformed effect %r (%s)", effect.source, effect.reason)

    def apply_all(self, effects: Optional[Iterable[Any]], store: ContextStore):
        for effect in effects or ():
            self.apply(effect, store)

    def _apply_context(self, effect: ContextMutate, store: ContextStore):
        value = resolve_operand(effect.value, store)

        if effect.op == "set":
            if value is MISSING:
                logger.warning("Context effect on '%s' references a missing value; skipped", effect.path)
                return
            store.set_context(effect.path, value)
        else:
            current = _to_number(store.get_context(effect.path))
            amount = _to_number(value)
            value = current + amount if effect.op == "add" else current - amount
            store.set_context(effect.path, value)

        logger.debug("Context '%s' %s -> %r", effect.path, effect.op, value)


_EFFECT_TYPES = (SetFlag, ToggleFlag, ContextMutate, QuestTransition, MalformedEffect)

_default_applier = EffectApplier()


def apply(effect: Any, store: ContextStore):
    _default_applier.apply(effect, store)


def apply_all(effects: Optional[Iterable[Any]], store: ContextStore):
    _default_applier.apply_all(effects, store)
