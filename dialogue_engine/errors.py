"""
Exceptions raised by the dialogue engine
"""

from typing import List, Optional


class DialogueError(Exception):
    """Base class for all dialogue engine errors"""


class TreeFormatError(DialogueError):
    """Raised when tree data is structurally invalid and cannot be loaded"""


class InvalidChoiceError(DialogueError):
    """Raised when choose() gets an index outside the offered choices"""

    def __init__(self, index, available: int, node_id: Optional[str] = None):
        self.index = index
        self.available = available
        self.node_id = node_id
        where = f" at node '{node_id}'" if node_id else ""
        super().__init__(f"Invalid choice index {index!r}{where}: {available} choice(s) available")


class AutoAdvanceBudgetExceeded(DialogueError):
    """
    Raised when a chain of auto-advancing nodes exceeds the hop budget.

    This almost always means an authoring cycle: an auto-advance node whose
    next_node eventually leads back to itself.
    """

    def __init__(self, chain: List[str], budget: int):
        self.chain = list(chain)
        self.budget = budget
        path = " -> ".join(self.chain)
        super().__init__(f"Auto-advance budget of {budget} hops exceeded: {path}")
