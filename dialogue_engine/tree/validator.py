"""
Static checks on a DialogTree for content authors.

Nothing found here stops a tree from running: the engine recovers from
dangling references and malformed scripts at runtime. The validator exists so
authors see those problems before players do.
"""

from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from ..script.model import MalformedCondition, MalformedEffect, SetFlag, ToggleFlag
from ..script.parser import referenced_flags
from .tree import DialogTree


@dataclass
class ValidationIssue:
    """Represents a validation problem with its location in the tree"""

    severity: str  # 'error' or 'warning'
    message: str
    node_id: Optional[str] = None
    choice_index: Optional[int] = None
    suggestion: Optional[str] = None

    @property
    def location(self) -> str:
        if self.node_id is None:
            return "tree"
        if self.choice_index is None:
            return f"[{self.node_id}]"
        return f"[{self.node_id}] choice {self.choice_index + 1}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "severity": self.severity,
            "message": self.message,
            "nodeId": self.node_id,
            "choiceIndex": self.choice_index,
            "suggestion": self.suggestion,
        }


class DialogueValidator:
    """Validates the structure and scripts of a dialogue tree"""

    def __init__(self, tree: DialogTree):
        self.tree = tree
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationIssue] = []

        # Flag usage for semantic checks
        self.flags_set: Set[str] = set()
        self.flags_used: Dict[str, str] = {}  # flag -> first node id reading it

    def validate(self) -> bool:
        """Run every check; True if there are no errors (warnings are allowed)"""
        self.errors = []
        self.warnings = []
        self.flags_set = set()
        self.flags_used = {}

        self._validate_start_node()
        self._validate_references()
        self._validate_scripts()
        self._validate_auto_advance_cycles()
        self._validate_reachability()
        self._check_unset_flags()

        return len(self.errors) == 0

    @property
    def issues(self) -> List[ValidationIssue]:
        return self.errors + self.warnings

    def _validate_start_node(self):
        if not self.tree.nodes:
            self._add_error("Tree has no nodes")
        elif self.tree.start_node not in self.tree.nodes:
            self._add_error(
                f"Start node '{self.tree.start_node}' does not exist",
                suggestion=f"Available nodes: {', '.join(sorted(self.tree.nodes)[:10])}",
            )

    def _validate_references(self):
        """Dangling goto/next_node references end the conversation at runtime"""
        for node_id, node in self.tree.nodes.items():
            if node.next_node is not None and node.next_node not in self.tree.nodes:
                self._add_warning(f"next_node '{node.next_node}' does not exist", node_id)

            for index, choice in enumerate(node.choices):
                if choice.goto is not None and choice.goto not in self.tree.nodes:
                    self._add_warning(
                        f"Choice goes to undefined node '{choice.goto}'",
                        node_id,
                        index,
                        suggestion="Add the node or set goto to null to end the conversation",
                    )

    def _validate_scripts(self):
        for node_id, node in self.tree.nodes.items():
            self._check_conditions(node.compiled_conditions, node_id, None)
            self._check_effects(node.compiled_effects, node_id, None)

            for index, choice in enumerate(node.choices):
                self._check_conditions(choice.compiled_conditions, node_id, index)
                self._check_effects(choice.compiled_effects, node_id, index)

    def _check_conditions(self, conditions, node_id: str, choice_index: Optional[int]):
        for condition in conditions:
            if isinstance(condition, MalformedCondition):
                self._add_error(
                    f"Malformed condition {condition.source!r}: {condition.reason}",
                    node_id,
                    choice_index,
                    suggestion="Use flag.<name>, context.<path>, or a comparison like context.gold>=10",
                )
                continue
            for flag in referenced_flags(condition):
                self.flags_used.setdefault(flag, node_id)

    def _check_effects(self, effects, node_id: str, choice_index: Optional[int]):
        for effect in effects:
            if isinstance(effect, MalformedEffect):
                self._add_error(
                    f"Malformed effect {effect.source!r}: {effect.reason}",
                    node_id,
                    choice_index,
                    suggestion="Use set_flag.<name>, unset_flag.<name>, or context.<path>=<value>",
                )
            elif isinstance(effect, (SetFlag, ToggleFlag)):
                self.flags_set.add(effect.key)

    def _validate_auto_advance_cycles(self):
        """An auto-advance chain that loops back on itself can never stop"""
        reported: Set[str] = set()
        for start_id, node in self.tree.nodes.items():
            if not node.auto_advance or start_id in reported:
                continue

            chain = [start_id]
            seen = {start_id}
            current = node
            while current is not None and current.auto_advance and current.next_node is not None:
                next_id = current.next_node
                if next_id in seen:
                    loop = chain[chain.index(next_id):] + [next_id]
                    if not reported.intersection(loop):
                        self._add_error(
                            f"Auto-advance cycle: {' -> '.join(loop)}",
                            next_id,
                            suggestion="Turn off autoAdvance on one node or give it choices",
                        )
                    reported.update(loop)
                    break
                chain.append(next_id)
                seen.add(next_id)
                current = self.tree.get_node(next_id)

    def _validate_reachability(self):
        if self.tree.start_node not in self.tree.nodes:
            return

        reachable = {self.tree.start_node}
        queue = deque([self.tree.start_node])
        while queue:
            node = self.tree.nodes[queue.popleft()]
            targets = [choice.goto for choice in node.choices]
            targets.append(node.next_node)
            for target in targets:
                if target in self.tree.nodes and target not in reachable:
                    reachable.add(target)
                    queue.append(target)

        for node_id in self.tree.nodes:
            if node_id not in reachable:
                self._add_warning(f"Node '{node_id}' is unreachable from the start node", node_id)

    def _check_unset_flags(self):
        """Flags read but never written by this tree must come from elsewhere in the game"""
        for flag, node_id in sorted(self.flags_used.items()):
            if flag not in self.flags_set:
                self._add_warning(f"Flag '{flag}' is checked but never set in this tree", node_id)

    def _add_error(
        self,
        message: str,
        node_id: Optional[str] = None,
        choice_index: Optional[int] = None,
        suggestion: Optional[str] = None,
    ):
        self.errors.append(ValidationIssue("error", message, node_id, choice_index, suggestion))

    def _add_warning(
        self,
        message: str,
        node_id: Optional[str] = None,
        choice_index: Optional[int] = None,
        suggestion: Optional[str] = None,
    ):
        self.warnings.append(ValidationIssue("warning", message, node_id, choice_index, suggestion))
