"""Tests for the built-in NPC templates."""

import pytest

from dialogue_engine import ContextStore, DialogSession, DialogueValidator, QuestStatus, build_template, list_templates


class TestTemplates:
    """Test building and running template trees."""

    def test_list_templates(self):
        assert list_templates() == ["guard", "merchant", "quest_giver"]

    @pytest.mark.parametrize("name", ["guard", "merchant", "quest_giver"])
    def test_templates_have_no_errors(self, name):
        """Templates may leave nodes for the author to fill in, but must not be broken."""
        validator = DialogueValidator(build_template(name))
        assert validator.validate() is True

    def test_defaults(self):
        tree = build_template("quest_giver")
        assert tree.id == "quest_giver"
        assert tree.title == "Quest Giver"
        assert tree.start_node == "initial"
        assert tree.metadata == {"template": "quest_giver"}

    def test_overrides(self):
        tree = build_template("merchant", tree_id="bakery", speaker="Greta")
        assert tree.id == "bakery"
        assert {node.speaker for node in tree.nodes.values()} == {"Greta"}

    def test_overrides_do_not_leak(self):
        build_template("merchant", speaker="Greta")
        assert build_template("merchant").get_node("greeting").speaker == "Merchant"

    def test_unknown_template(self):
        with pytest.raises(KeyError):
            build_template("dragon")

    def test_accepting_quest_starts_it(self):
        """Playing through the quest giver starts the quest."""
        store = ContextStore()
        session = DialogSession(build_template("quest_giver"), store)
        session.start()
        session.choose(0)
        result = session.choose(0)

        assert result.is_terminal
        assert store.get_flag("quest_accepted") is True
        assert store.get_quest_status("lost_item").status is QuestStatus.ACTIVE

    def test_guard_missing_nodes_end_conversation(self):
        session = DialogSession(build_template("guard"), ContextStore())
        session.start()
        assert session.choose(2).presentation is None
