"""
Condition and effect mini-languages
"""

from .effects import EffectApplier, apply, apply_all
from .evaluator import ConditionEvaluator, evaluate, evaluate_all
from .parser import ScriptParser, parse_condition, parse_conditions, parse_effect, parse_effects

__all__ = [
    "ScriptParser",
    "ConditionEvaluator",
    "EffectApplier",
    "parse_condition",
    "parse_conditions",
    "parse_effect",
    "parse_effects",
    "evaluate",
    "evaluate_all",
    "apply",
    "apply_all",
]
