"""
Dialogue graph model: trees, nodes and choices
"""

from .node import DialogChoice, DialogNode
from .tree import DialogTree
from .validator import DialogueValidator, ValidationIssue

__all__ = [
    "DialogTree",
    "DialogNode",
    "DialogChoice",
    "DialogueValidator",
    "ValidationIssue",
]
