"""
Dialogue session: drives one conversation through a DialogTree.

The session is pull-based. The caller (usually the UI) calls enter()/start()
and then choose() with an index into the choices it was shown. Nothing here
recurses through the graph, so cyclic trees are safe; the only automatic
transitions are auto-advance hops, which are bounded per call.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from .errors import AutoAdvanceBudgetExceeded, DialogueError, InvalidChoiceError
from .state.store import ContextStore
from .tree.node import DialogChoice, DialogNode
from .tree.tree import DialogTree

logger = logging.getLogger(__name__)

DEFAULT_AUTO_ADVANCE_BUDGET = 32

ChoiceKey = Tuple[str, str, int]


class SessionState(Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    RESOLVING = "resolving"
    TERMINAL = "terminal"
    ERROR = "error"


@dataclass
class Presentation:
    """What the UI shows for one node: its text plus the choices on offer"""

    node_id: str
    text: str
    speaker: str
    portrait: Optional[str] = None
    voice_line: Optional[str] = None
    choices: List[DialogChoice] = field(default_factory=list)
    next_node: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "text": self.text,
            "speaker": self.speaker,
            "portrait": self.portrait,
            "voiceLine": self.voice_line,
            "choices": [
                {"text": choice.text, "requirements": list(choice.requirements)} for choice in self.choices
            ],
            "nextNode": self.next_node,
        }


@dataclass
class StepResult:
    """
    Outcome of one enter()/choose()/advance() call.

    presentation is None when the target node was unavailable (unknown id or
    failed conditions). A TERMINAL result may still carry a presentation:
    the last node is shown, but it offers nothing further.
    """

    state: SessionState
    presentation: Optional[Presentation] = None
    passed: List[Presentation] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state is SessionState.TERMINAL

    @property
    def choices(self) -> List[DialogChoice]:
        return self.presentation.choices if self.presentation else []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "presentation": self.presentation.to_dict() if self.presentation else None,
            "passed": [p.to_dict() for p in self.passed],
        }


class DialogSession:
    """
    Live traversal state for one conversation.

    Tracks the current node, the choices on offer, and which once-only
    choices have been taken. The ContextStore is shared and owned by the
    caller.
    """

    def __init__(
        self,
        tree: DialogTree,
        store: ContextStore,
        auto_advance_budget: int = DEFAULT_AUTO_ADVANCE_BUDGET,
        once_taken: Optional[Set[ChoiceKey]] = None,
    ):
        self.tree = tree
        self.store = store
        self.auto_advance_budget = auto_advance_budget
        self.once_taken: Set[ChoiceKey] = set(once_taken or ())

        self.state = SessionState.IDLE
        self.current_node_id: Optional[str] = None
        self.presentation: Optional[Presentation] = None
        self.error: Optional[DialogueError] = None
        self.history: List[str] = []

        # Offered choices with their index in the node's raw choice list
        self._offered: List[Tuple[int, DialogChoice]] = []

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.PRESENTING

    def start(self) -> StepResult:
        """Enter the tree's start node"""
        return self.enter(self.tree.start_node)

    def enter(self, node_id: Optional[str]) -> StepResult:
        """
        Enter a node, following any auto-advance chain.

        Raises:
            AutoAdvanceBudgetExceeded: The chain hopped more than the budget
                allows. The store is rolled back to its state before the call
                and the session moves to ERROR.
        """
        snapshot = self.store.snapshot()
        history_len = len(self.history)
        try:
            return self._enter(node_id)
        except AutoAdvanceBudgetExceeded:
            self.store.restore(snapshot)
            del self.history[history_len:]
            raise

    def choose(self, index: int) -> StepResult:
        """
        Take one of the choices from the last presentation.

        Args:
            index: Position in the FILTERED choice list that was presented,
                not in the node's full choice list

        Raises:
            InvalidChoiceError: index does not name an offered choice
            AutoAdvanceBudgetExceeded: see enter()
        """
        if self.state is not SessionState.PRESENTING or not self._offered:
            raise InvalidChoiceError(index, 0, self.current_node_id)
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._offered):
            raise InvalidChoiceError(index, len(self._offered), self.current_node_id)

        raw_index, choice = self._offered[index]
        node_id = self.current_node_id

        snapshot = self.store.snapshot()
        history_len = len(self.history)
        once_before = set(self.once_taken)
        self.state = SessionState.RESOLVING
        try:
            choice.apply_effects(self.store)
            if choice.once:
                self.once_taken.add(self._choice_key(node_id, raw_index))

            logger.debug("Session '%s': chose %d at '%s' -> %s", self.tree.id, index, node_id, choice.goto)
            if choice.goto is None:
                return self._finish()
            return self._enter(choice.goto)
        except AutoAdvanceBudgetExceeded:
            self.store.restore(snapshot)
            del self.history[history_len:]
            self.once_taken = once_before
            raise

    def advance(self) -> StepResult:
        """Continue from a node that has a next_node but is waiting for input"""
        if self.state is not SessionState.PRESENTING:
            raise DialogueError(f"Cannot advance a session in state '{self.state.value}'")

        node = self.tree.get_node(self.current_node_id)
        if node is None or node.next_node is None:
            return self._finish()

        snapshot = self.store.snapshot()
        history_len = len(self.history)
        try:
            return self._enter(node.next_node)
        except AutoAdvanceBudgetExceeded:
            self.store.restore(snapshot)
            del self.history[history_len:]
            raise

    def end(self) -> StepResult:
        """End the conversation early"""
        return self._finish()

    # Internals

    def _enter(self, node_id: Optional[str]) -> StepResult:
        passed: List[Presentation] = []
        chain: List[str] = []

        while True:
            node = self.tree.evaluate_node(node_id, self.store)
            if node is None:
                result = self._finish()
                result.passed = passed
                return result

            chain.append(node.id)
            self.history.append(node.id)
            presentation = self._present(node)

            if node.auto_advance and node.next_node is not None:
                if len(chain) > self.auto_advance_budget:
                    self.state = SessionState.ERROR
                    self.error = AutoAdvanceBudgetExceeded(chain, self.auto_advance_budget)
                    self._offered = []
                    logger.error("Tree '%s': %s", self.tree.id, self.error)
                    raise self.error
                passed.append(presentation)
                node_id = node.next_node
                continue

            if presentation.choices or node.next_node is not None:
                self.state = SessionState.PRESENTING
            else:
                self.state = SessionState.TERMINAL
            return StepResult(self.state, presentation, passed)

    def _present(self, node: DialogNode) -> Presentation:
        self.current_node_id = node.id
        self._offered = [
            (raw_index, choice)
            for raw_index, choice in enumerate(node.choices)
            if choice.can_choose(self.store)
            and not (choice.once and self._choice_key(node.id, raw_index) in self.once_taken)
        ]
        self.presentation = Presentation(
            node_id=node.id,
            text=node.text,
            speaker=node.speaker,
            portrait=node.portrait,
            voice_line=node.voice_line,
            choices=[choice for _, choice in self._offered],
            next_node=node.next_node,
        )
        return self.presentation

    def _finish(self) -> StepResult:
        self.state = SessionState.TERMINAL
        self._offered = []
        logger.debug("Session '%s' ended at '%s'", self.tree.id, self.current_node_id)
        return StepResult(SessionState.TERMINAL, None)

    def _choice_key(self, node_id: str, raw_index: int) -> ChoiceKey:
        return (self.tree.id, node_id, raw_index)

    def to_dict(self) -> Dict[str, Any]:
        """Save data for the caller's save system"""
        return {
            "tree": self.tree.id,
            "state": self.state.value,
            "currentNode": self.current_node_id,
            "onceTaken": [list(key) for key in sorted(self.once_taken)],
            "history": list(self.history),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        tree: DialogTree,
        store: ContextStore,
        auto_advance_budget: int = DEFAULT_AUTO_ADVANCE_BUDGET,
    ) -> "DialogSession":
        """Restore a saved session; call enter(session.current_node_id) to resume"""
        once_taken = {(str(t), str(n), int(i)) for t, n, i in data.get("onceTaken", [])}
        session = cls(tree, store, auto_advance_budget=auto_advance_budget, once_taken=once_taken)
        session.current_node_id = data.get("currentNode")
        session.history = list(data.get("history", []))
        return session
