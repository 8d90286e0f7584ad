"""
Dialogue Engine - branching conversations with flag, context and quest scripting
"""

__version__ = "0.1.0"

from .errors import (
    AutoAdvanceBudgetExceeded,
    DialogueError,
    InvalidChoiceError,
    TreeFormatError,
)
from .export import DialogueExporter
from .session import DEFAULT_AUTO_ADVANCE_BUDGET, DialogSession, Presentation, SessionState, StepResult
from .state import MISSING, ContextStore, QuestRecord, QuestStatus
from .templates import build_template, list_templates
from .tree import DialogChoice, DialogNode, DialogTree, DialogueValidator, ValidationIssue

__all__ = [
    "ContextStore",
    "QuestRecord",
    "QuestStatus",
    "MISSING",
    "DialogTree",
    "DialogNode",
    "DialogChoice",
    "DialogSession",
    "SessionState",
    "StepResult",
    "Presentation",
    "DEFAULT_AUTO_ADVANCE_BUDGET",
    "DialogueValidator",
    "ValidationIssue",
    "DialogueExporter",
    "build_template",
    "list_templates",
    # Errors
    "DialogueError",
    "TreeFormatError",
    "InvalidChoiceError",
    "AutoAdvanceBudgetExceeded",
]
