"""
Shared game state read and written by dialogue conditions and effects
"""

import copy
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel for a context path or quest that does not exist"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


class QuestStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class QuestRecord:
    """Lifecycle state of one quest plus the time each transition happened"""

    status: QuestStatus
    started: Optional[float] = None
    completed: Optional[float] = None
    failed: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "status": self.status.value,
            "started": self.started,
            "completed": self.completed,
            "failed": self.failed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuestRecord":
        return cls(
            status=QuestStatus(data.get("status", QuestStatus.ACTIVE.value)),
            started=data.get("started"),
            completed=data.get("completed"),
            failed=data.get("failed"),
        )


def split_path(path: str) -> List[str]:
    """Split a dotted context path into its segments"""
    return [segment.strip() for segment in path.split(".")]


class ContextStore:
    """
    Flags, nested context values and quest records for one game session.

    The store is owned by the caller and passed by reference into every
    evaluation, so it outlives any single dialogue tree or session.
    """

    def __init__(
        self,
        flags: Optional[Dict[str, bool]] = None,
        context: Optional[Dict[str, Any]] = None,
        quests: Optional[Dict[str, QuestRecord]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.flags: Dict[str, bool] = dict(flags or {})
        self.context: Dict[str, Any] = copy.deepcopy(context) if context else {}
        self.quests: Dict[str, QuestRecord] = dict(quests or {})
        self.clock = clock

    # Flags

    def get_flag(self, key: str) -> bool:
        """Get a flag value; missing flags are False"""
        return bool(self.flags.get(key, False))

    def has_flag(self, key: str) -> bool:
        return key in self.flags

    def set_flag(self, key: str, value: bool = True):
        self.flags[key] = bool(value)

    def toggle_flag(self, key: str) -> bool:
        """Flip a flag and return its new value"""
        self.flags[key] = not self.get_flag(key)
        return self.flags[key]

    # Context

    def get_context(self, path: str, default: Any = MISSING) -> Any:
        """
        Resolve a dotted path against the context values.

        Args:
            path: Dotted path such as "player.stats.level"
            default: Value returned when any segment is missing

        Returns:
            The stored value, or default if the path does not resolve
        """
        value: Any = self.context
        for segment in split_path(path):
            if not isinstance(value, dict) or segment not in value:
                return default
            value = value[segment]
        return value

    def has_context(self, path: str) -> bool:
        return self.get_context(path) is not MISSING

    def set_context(self, path: str, value: Any):
        """Write a value at a dotted path, creating intermediate dicts as needed"""
        segments = split_path(path)
        target = self.context
        for segment in segments[:-1]:
            child = target.get(segment)
            if not isinstance(child, dict):
                if child is not None:
                    logger.warning("Replacing non-dict context value at '%s' while writing '%s'", segment, path)
                child = {}
                target[segment] = child
            target = child
        target[segments[-1]] = value

    # Quests

    def get_quest_status(self, key: str) -> Optional[QuestRecord]:
        return self.quests.get(key)

    def set_quest_status(self, key: str, status: QuestStatus) -> QuestRecord:
        """Write or overwrite a quest record, stamping the transition time"""
        status = QuestStatus(status)
        now = self.clock()
        record = self.quests.get(key)

        if status is QuestStatus.ACTIVE:
            record = QuestRecord(status=status, started=now)
        elif record is None:
            record = QuestRecord(status=status)

        record.status = status
        if status is QuestStatus.COMPLETED:
            record.completed = now
        elif status is QuestStatus.FAILED:
            record.failed = now

        self.quests[key] = record
        return record

    # Snapshots and serialization

    def snapshot(self) -> Dict[str, Any]:
        """Capture the full state so it can be restored later"""
        return self.to_dict()

    def restore(self, snapshot: Dict[str, Any]):
        """Restore state captured by snapshot(), in place so held references stay live"""
        quests = {key: QuestRecord.from_dict(data) for key, data in snapshot.get("quests", {}).items()}

        self.flags.clear()
        self.flags.update(snapshot.get("flags", {}))
        self.context.clear()
        self.context.update(copy.deepcopy(snapshot.get("context", {})))
        self.quests.clear()
        self.quests.update(quests)

    def copy(self) -> "ContextStore":
        """Create a deep copy of the store"""
        new_store = ContextStore(clock=self.clock)
        new_store.restore(self.snapshot())
        return new_store

    def to_dict(self) -> Dict[str, Any]:
        """Convert store to JSON-serializable dict"""
        return {
            "flags": dict(self.flags),
            "context": copy.deepcopy(self.context),
            "quests": {key: record.to_dict() for key, record in self.quests.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], clock: Callable[[], float] = time.time) -> "ContextStore":
        store = cls(clock=clock)
        store.restore(data)
        return store
