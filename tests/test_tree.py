"""Tests for DialogTree loading, saving and presentation export."""

import json

import pytest

from dialogue_engine import ContextStore, DialogChoice, DialogNode, DialogTree, TreeFormatError


SAMPLE_TREE = {
    "id": "blacksmith",
    "title": "Blacksmith",
    "startNode": "greet",
    "variables": {"gold": 10},
    "metadata": {"author": "tests"},
    "nodes": {
        "greet": {
            "text": "What'll it be?",
            "speaker": "Brom",
            "portrait": "brom_neutral",
            "voiceLine": "brom_greet_01",
            "choices": [
                {
                    "text": "Buy a sword",
                    "goto": "buy",
                    "conditions": ["context.gold>=5", "flag.guild_member"],
                    "effects": [{"type": "context", "key": "gold", "action": "subtract", "value": 5}],
                    "requirements": ["5 gold"],
                },
                {"text": "Leave", "goto": None},
            ],
        },
        "buy": {
            "text": "Fine steel.",
            "speaker": "Brom",
            "autoAdvance": True,
            "nextNode": "greet",
            "tags": ["shop"],
            "conditions": ["flag.guild_member", {"type": "context", "key": "gold", "operator": ">=", "value": 0}],
            "effects": [
                {"type": "quest", "key": "new_blade", "action": "complete"},
                "context.last_purchase=sword",
            ],
        },
    },
}


class TestLoading:
    """Test building trees from the exchange format."""

    def test_from_dict_revives_choices(self):
        tree = DialogTree.from_dict(SAMPLE_TREE)
        greet = tree.get_node("greet")
        assert isinstance(greet, DialogNode)
        assert all(isinstance(choice, DialogChoice) for choice in greet.choices)
        assert greet.choices[0].requirement_text == "5 gold"
        assert greet.choices[1].is_terminal()

    def test_fields(self):
        tree = DialogTree.from_dict(SAMPLE_TREE)
        assert tree.start_node == "greet"
        assert tree.variables == {"gold": 10}
        buy = tree.get_node("buy")
        assert buy.auto_advance is True
        assert buy.next_node == "greet"
        assert buy.tags == ["shop"]
        assert tree.get_node("greet").voice_line == "brom_greet_01"

    def test_default_start_node(self):
        tree = DialogTree.from_dict({"id": "t", "nodes": {"start": {"text": "Hi"}}})
        assert tree.get_start_node().text == "Hi"

    def test_round_trip(self):
        tree = DialogTree.from_dict(SAMPLE_TREE)
        assert DialogTree.from_dict(tree.to_dict()) == tree
        assert DialogTree.from_json(tree.to_json()) == tree

    def test_round_trip_keeps_node_scripts(self):
        """Node-level conditions and effects survive in both forms."""
        buy = SAMPLE_TREE["nodes"]["buy"]
        restored = DialogTree.from_json(DialogTree.from_dict(SAMPLE_TREE).to_json()).get_node("buy")
        assert restored.conditions == buy["conditions"]
        assert restored.effects == buy["effects"]
        assert restored.compiled_conditions == DialogTree.from_dict(SAMPLE_TREE).get_node("buy").compiled_conditions

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"id": "t", "nodes": ["a"]},
            {"id": "t", "nodes": {"a": "not a node"}},
            {"id": "t", "nodes": {"a": {"choices": {"text": "x"}}}},
            {"id": "t", "nodes": {"a": {"choices": ["go"]}}},
        ],
    )
    def test_bad_shapes_raise(self, data):
        with pytest.raises(TreeFormatError):
            DialogTree.from_dict(data)

    def test_bad_json_raises(self):
        with pytest.raises(TreeFormatError):
            DialogTree.from_json("{not json")

    def test_add_node_rejects_duplicates(self):
        tree = DialogTree(id="t")
        tree.add_node(DialogNode(id="a"))
        with pytest.raises(TreeFormatError):
            tree.add_node(DialogNode(id="a"))


class TestFiles:
    """Test reading and writing tree files."""

    def test_save_and_load(self, tmp_path):
        tree = DialogTree.from_dict(SAMPLE_TREE)
        path = tmp_path / "npc" / "blacksmith.json"
        tree.save_file(path)
        assert DialogTree.load_file(path) == tree

    def test_id_defaults_to_file_stem(self, tmp_path):
        path = tmp_path / "innkeeper.json"
        path.write_text(json.dumps({"nodes": {"start": {"text": "Room?"}}}), encoding="utf-8")
        assert DialogTree.load_file(path).id == "innkeeper"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DialogTree.load_file(tmp_path / "nope.json")


class TestEvaluateNode:
    """Test node resolution against a store."""

    def test_no_conditions_always_available(self):
        tree = DialogTree.from_dict(SAMPLE_TREE)
        assert tree.evaluate_node("greet", ContextStore()) is tree.get_node("greet")

    def test_unknown_node(self):
        tree = DialogTree.from_dict(SAMPLE_TREE)
        assert tree.evaluate_node("forge", ContextStore()) is None
        assert tree.evaluate_node(None, ContextStore()) is None

    def test_available_choices(self):
        greet = DialogTree.from_dict(SAMPLE_TREE).get_node("greet")
        poor = ContextStore(context={"gold": 2}, flags={"guild_member": True})
        rich = ContextStore(context={"gold": 20}, flags={"guild_member": True})
        assert [c.text for c in greet.get_available_choices(poor)] == ["Leave"]
        assert [c.text for c in greet.get_available_choices(rich)] == ["Buy a sword", "Leave"]


class TestPresentationFormat:
    """Test the reduced presentation export."""

    def test_shape(self):
        data = DialogTree.from_dict(SAMPLE_TREE).to_presentation_format()
        assert data["id"] == "blacksmith"
        greet = data["nodes"]["greet"]
        assert greet["speaker"] == "Brom"
        assert greet["portrait"] == "brom_neutral"
        assert greet["voiceLine"] == "brom_greet_01"
        assert data["nodes"]["buy"]["autoAdvance"] is True
        assert data["nodes"]["buy"]["nextNode"] == "greet"

    def test_keeps_only_first_condition(self):
        greet = DialogTree.from_dict(SAMPLE_TREE).to_presentation_format()["nodes"]["greet"]
        assert greet["choices"][0] == {"text": "Buy a sword", "goto": "buy", "condition": "context.gold>=5"}
        assert greet["choices"][1] == {"text": "Leave", "goto": None}

    def test_is_json_serializable(self):
        json.dumps(DialogTree.from_dict(SAMPLE_TREE).to_presentation_format())
