"""
Dialogue tree: an id-keyed collection of nodes plus a start node
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..errors import TreeFormatError
from ..state.store import ContextStore
from .node import DialogChoice, DialogNode

logger = logging.getLogger(__name__)

DEFAULT_START_NODE = "start"


def _node_from_dict(node_id: str, data: Dict[str, Any]) -> DialogNode:
    """Build a node, reviving every choice into a DialogChoice"""
    if not isinstance(data, dict):
        raise TreeFormatError(f"Node '{node_id}' must be an object, got {type(data).__name__}")

    raw_choices = data.get("choices") or []
    if not isinstance(raw_choices, list):
        raise TreeFormatError(f"Node '{node_id}' choices must be a list")

    choices = []
    for index, choice_data in enumerate(raw_choices):
        if isinstance(choice_data, DialogChoice):
            choices.append(choice_data)
        elif isinstance(choice_data, dict):
            choices.append(DialogChoice.from_dict(choice_data))
        else:
            raise TreeFormatError(f"Node '{node_id}' choice {index} must be an object")

    return DialogNode(
        id=node_id,
        text=data.get("text") or "",
        speaker=data.get("speaker") or "",
        portrait=data.get("portrait"),
        choices=choices,
        auto_advance=bool(data.get("autoAdvance", False)),
        next_node=data.get("nextNode") or None,
        voice_line=data.get("voiceLine"),
        conditions=data.get("conditions"),
        effects=data.get("effects"),
        tags=data.get("tags"),
        priority=data.get("priority") or 0,
    )


@dataclass
class DialogTree:
    """
    A named conversation graph.

    Nodes live in a dict keyed by id; choices and next_node refer to other
    nodes by id only, so cycles (returning to a hub node) are just ids.
    References to ids that do not exist are allowed and end the
    conversation at runtime.
    """

    id: str
    title: str = ""
    description: str = ""
    start_node: str = DEFAULT_START_NODE
    nodes: Dict[str, DialogNode] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_node(self, node_id: Optional[str]) -> Optional[DialogNode]:
        """Get a dialog node by ID"""
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def get_start_node(self) -> Optional[DialogNode]:
        return self.get_node(self.start_node)

    def add_node(self, node: DialogNode) -> DialogNode:
        if node.id in self.nodes:
            raise TreeFormatError(f"Duplicate node id '{node.id}' in tree '{self.id}'")
        self.nodes[node.id] = node
        return node

    def evaluate_node(self, node_id: Optional[str], store: ContextStore) -> Optional[DialogNode]:
        """
        Resolve a node for entry.

        Node effects are applied only when the node's conditions pass.

        Returns:
            The node, or None if the id is unknown or its conditions fail
        """
        node = self.get_node(node_id)
        if node is None:
            logger.warning("Tree '%s': unknown node '%s', ending conversation", self.id, node_id)
            return None

        if not node.evaluate_conditions(store):
            logger.debug("Tree '%s': node '%s' not available", self.id, node_id)
            return None

        node.apply_effects(store)
        return node

    def to_presentation_format(self) -> Dict[str, Any]:
        """
        Reduced view for presentation layers.

        Each choice keeps only its FIRST condition under the key "condition";
        further conditions and all effects are dropped. Downstream content
        relies on this shape, so the truncation is kept as-is.
        """
        nodes = {}
        for node_id, node in self.nodes.items():
            choices = []
            for choice in node.choices:
                entry = {"text": choice.text, "goto": choice.goto}
                if choice.conditions:
                    entry["condition"] = choice.conditions[0]
                choices.append(entry)

            nodes[node_id] = {
                "text": node.text,
                "speaker": node.speaker,
                "portrait": node.portrait,
                "choices": choices,
                "autoAdvance": node.auto_advance,
                "nextNode": node.next_node,
                "voiceLine": node.voice_line,
            }

        return {"id": self.id, "nodes": nodes}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON exchange format"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "startNode": self.start_node,
            "nodes": {node_id: node.to_dict() for node_id, node in self.nodes.items()},
            "variables": dict(self.variables),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DialogTree":
        """Build a tree from the JSON exchange format"""
        if not isinstance(data, dict):
            raise TreeFormatError(f"Dialogue tree must be an object, got {type(data).__name__}")

        raw_nodes = data.get("nodes") or {}
        if not isinstance(raw_nodes, dict):
            raise TreeFormatError("Tree 'nodes' must be an object keyed by node id")

        tree = cls(
            id=str(data.get("id") or ""),
            title=data.get("title") or "",
            description=data.get("description") or "",
            start_node=data.get("startNode") or DEFAULT_START_NODE,
            variables=dict(data.get("variables") or {}),
            metadata=dict(data.get("metadata") or {}),
        )
        for node_id, node_data in raw_nodes.items():
            tree.nodes[node_id] = _node_from_dict(node_id, node_data)

        if tree.start_node not in tree.nodes:
            logger.warning("Tree '%s': start node '%s' does not exist", tree.id, tree.start_node)

        return tree

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "DialogTree":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise TreeFormatError(f"Invalid dialogue JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def load_file(cls, file_path: Union[str, Path]) -> "DialogTree":
        """Load a tree from a .json file; the file stem is used when no id is given"""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Dialogue file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            tree = cls.from_json(f.read())

        if not tree.id:
            tree.id = file_path.stem
        return tree

    def save_file(self, file_path: Union[str, Path]):
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(self.to_json())
