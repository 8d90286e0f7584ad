"""
Predefined dialogue trees for common NPC types
"""

import copy
from typing import Any, Dict, List, Optional

from .tree.tree import DialogTree

DIALOG_TEMPLATES: Dict[str, Dict[str, Dict[str, Any]]] = {
    "merchant": {
        "greeting": {
            "text": "Welcome to my shop! Take a look around.",
            "speaker": "Merchant",
            "choices": [
                {"text": "Show me your wares", "goto": "shop"},
                {"text": "Tell me about this town", "goto": "town_info"},
                {"text": "Goodbye", "goto": None},
            ],
        },
        "shop": {
            "text": "Here's what I have available:",
            "speaker": "Merchant",
            "autoAdvance": True,
            "nextNode": None,
        },
        "town_info": {
            "text": "This town has been here for generations. We've got everything you need.",
            "speaker": "Merchant",
            "choices": [{"text": "Thanks for the info", "goto": "greeting"}],
        },
    },
    "quest_giver": {
        "initial": {
            "text": "You look like someone who can help me with a problem...",
            "speaker": "Quest Giver",
            "choices": [
                {"text": "What do you need?", "goto": "quest_offer"},
                {"text": "I'm busy right now", "goto": "quest_decline"},
            ],
        },
        "quest_offer": {
            "text": "I need you to retrieve my lost item from the nearby cave. I'll reward you well!",
            "speaker": "Quest Giver",
            "choices": [
                {
                    "text": "I'll do it",
                    "goto": "quest_accept",
                    "effects": ["set_flag.quest_accepted", "start_quest.lost_item"],
                },
                {"text": "That sounds dangerous", "goto": "quest_decline"},
            ],
        },
        "quest_accept": {
            "text": "Excellent! Return to me when you have the item.",
            "speaker": "Quest Giver",
            "autoAdvance": True,
            "nextNode": None,
        },
        "quest_decline": {
            "text": "I understand. Perhaps you'll change your mind later.",
            "speaker": "Quest Giver",
            "autoAdvance": True,
            "nextNode": None,
        },
    },
    "guard": {
        "greeting": {
            "text": "Halt! Who goes there?",
            "speaker": "Guard",
            "choices": [
                {"text": "Just passing through", "goto": "casual"},
                {"text": "I need information", "goto": "information"},
                {"text": "Show me your authority", "goto": "authority"},
            ],
        },
        "casual": {
            "text": "Very well. Move along, but keep the peace.",
            "speaker": "Guard",
            "autoAdvance": True,
            "nextNode": None,
        },
        "information": {
            "text": "What do you need to know?",
            "speaker": "Guard",
            "choices": [
                {"text": "Where can I find the inn?", "goto": "directions_inn"},
                {"text": "What's the latest news?", "goto": "news"},
            ],
        },
    },
}


def list_templates() -> List[str]:
    return sorted(DIALOG_TEMPLATES)


def build_template(name: str, tree_id: Optional[str] = None, speaker: Optional[str] = None) -> DialogTree:
    """
    Build a DialogTree from a named template.

    The first node of the template is the start node. Some templates point at
    nodes they do not define (e.g. the guard's "news"); those choices simply
    end the conversation until the content author adds the node.

    Args:
        name: Template name (see list_templates())
        tree_id: Id for the new tree, defaults to the template name
        speaker: Replaces the template's generic speaker name on every node
    """
    if name not in DIALOG_TEMPLATES:
        raise KeyError(f"Unknown dialogue template '{name}'. Available: {', '.join(list_templates())}")

    nodes = copy.deepcopy(DIALOG_TEMPLATES[name])
    if speaker:
        for node in nodes.values():
            node["speaker"] = speaker

    return DialogTree.from_dict(
        {
            "id": tree_id or name,
            "title": name.replace("_", " ").title(),
            "startNode": next(iter(nodes)),
            "nodes": nodes,
            "metadata": {"template": name},
        }
    )
