"""
Export dialogue trees to various formats
"""

import csv
import json
from pathlib import Path
from typing import Any

from ..tree.tree import DialogTree

EXPORT_FORMATS = ("json", "presentation", "csv")


def _script_text(items) -> str:
    """Join conditions/effects for a single CSV cell"""
    return "; ".join(item if isinstance(item, str) else json.dumps(item, sort_keys=True) for item in items)


class DialogueExporter:
    """Export dialogue trees to various formats"""

    def export(self, tree: DialogTree, output_path: Path, fmt: str = "json"):
        if fmt == "json":
            self.export_to_json(tree, output_path)
        elif fmt == "presentation":
            self.export_to_presentation(tree, output_path)
        elif fmt == "csv":
            self.export_to_csv(tree, output_path)
        else:
            raise ValueError(f"Unknown export format '{fmt}'. Expected one of: {', '.join(EXPORT_FORMATS)}")

    def export_to_csv(self, tree: DialogTree, output_path: Path):
        """Export to Pixel Crushers Dialogue System CSV format"""
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as csvfile:
            fieldnames = [
                "ID", "Actor", "Conversant", "Title", "Dialogue Text",
                "Menu Text", "Sequence", "Conditions", "Script",
                "Is Root", "Is Group", "Node Color", "Delay",
                "Falsehood Safe", "Priority", "Entry Tag",
            ]

            writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
            writer.writeheader()

            for i, (node_id, node) in enumerate(tree.nodes.items()):
                entry = {
                    "ID": i + 1,
                    "Actor": node.speaker,
                    "Conversant": "Player",
                    "Title": node_id,
                    "Dialogue Text": node.text,
                    "Menu Text": "",
                    "Sequence": node.voice_line or "",
                    "Conditions": _script_text(node.conditions),
                    "Script": _script_text(node.effects),
                    "Is Root": "True" if node_id == tree.start_node else "False",
                    "Is Group": "False",
                    "Node Color": "White",
                    "Delay": "0" if node.auto_advance else "-1",
                    "Falsehood Safe": "False",
                    "Priority": node.priority,
                    "Entry Tag": ", ".join(node.tags),
                }
                writer.writerow(entry)

                for j, choice in enumerate(node.choices):
                    choice_entry = {
                        "ID": f"{i + 1}.{j + 1}",
                        "Actor": "Player",
                        "Conversant": node.speaker,
                        "Title": f"{node_id} -> {choice.goto or 'END'}",
                        "Dialogue Text": choice.text,
                        "Menu Text": choice.text,
                        "Sequence": "",
                        "Conditions": _script_text(choice.conditions),
                        "Script": _script_text(choice.effects),
                        "Is Root": "False",
                        "Is Group": "False",
                        "Node Color": "Blue",
                        "Delay": "-1",
                        "Falsehood Safe": "False",
                        "Priority": choice.priority,
                        "Entry Tag": "once" if choice.once else "",
                    }
                    writer.writerow(choice_entry)

    def export_to_json(self, tree: DialogTree, output_path: Path):
        """Export to the full JSON exchange format"""
        self._write_json(tree.to_dict(), output_path)

    def export_to_presentation(self, tree: DialogTree, output_path: Path):
        """Export the reduced presentation format (first condition per choice only)"""
        self._write_json(tree.to_presentation_format(), output_path)

    def _write_json(self, data: Any, output_path: Path):
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
