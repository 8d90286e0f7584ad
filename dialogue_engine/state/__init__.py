"""
Game state shared between dialogue trees
"""

from .store import MISSING, ContextStore, QuestRecord, QuestStatus

__all__ = ["ContextStore", "QuestRecord", "QuestStatus", "MISSING"]
