"""Tests for DialogueExporter."""

import csv
import json

import pytest

from dialogue_engine import DialogTree, DialogueExporter

TREE = {
    "id": "inn",
    "startNode": "start",
    "nodes": {
        "start": {
            "text": "Need a room?",
            "speaker": "Innkeeper",
            "voiceLine": "inn_01",
            "choices": [
                {"text": "Yes", "goto": "room", "conditions": ["context.gold>=2", "flag.rested==false"], "once": True},
                {"text": "No"},
            ],
        },
        "room": {"text": "Upstairs.", "speaker": "Innkeeper", "effects": ["set_flag.rested"]},
    },
}


@pytest.fixture
def tree():
    return DialogTree.from_dict(TREE)


class TestExporter:
    """Test each export format."""

    def test_json(self, tree, tmp_path):
        path = tmp_path / "inn.json"
        DialogueExporter().export(tree, path, "json")
        assert DialogTree.from_dict(json.loads(path.read_text(encoding="utf-8"))) == tree

    def test_presentation(self, tree, tmp_path):
        path = tmp_path / "out" / "inn.presentation.json"
        DialogueExporter().export(tree, path, "presentation")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == tree.to_presentation_format()
        assert data["nodes"]["start"]["choices"][0]["condition"] == "context.gold>=2"

    def test_csv(self, tree, tmp_path):
        path = tmp_path / "inn.csv"
        DialogueExporter().export(tree, path, "csv")

        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))

        assert [row["ID"] for row in rows] == ["1", "1.1", "1.2", "2"]
        assert rows[0]["Is Root"] == "True"
        assert rows[0]["Sequence"] == "inn_01"
        assert rows[1]["Conditions"] == "context.gold>=2; flag.rested==false"
        assert rows[1]["Entry Tag"] == "once"
        assert rows[2]["Title"] == "start -> END"
        assert rows[3]["Script"] == "set_flag.rested"

    def test_unknown_format(self, tree, tmp_path):
        with pytest.raises(ValueError):
            DialogueExporter().export(tree, tmp_path / "x", "yarn")
