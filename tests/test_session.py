"""Tests for DialogSession traversal."""

import pytest

from dialogue_engine import (
    AutoAdvanceBudgetExceeded,
    ContextStore,
    DialogSession,
    DialogTree,
    DialogueError,
    InvalidChoiceError,
    SessionState,
)


def make_tree(nodes, start="A", tree_id="test"):
    return DialogTree.from_dict({"id": tree_id, "startNode": start, "nodes": nodes})


def greeting_tree():
    return make_tree(
        {
            "A": {
                "text": "Hi",
                "choices": [
                    {
                        "text": "Hello",
                        "goto": "B",
                        "conditions": ["flag.met_before==false"],
                        "effects": ["set_flag.met_before"],
                    }
                ],
            },
            "B": {"text": "Welcome back", "choices": []},
        }
    )


class TestGreetingScenario:
    """Test the first-meeting conversation end to end."""

    def test_first_meeting_then_return(self):
        tree = greeting_tree()
        store = ContextStore()

        session = DialogSession(tree, store)
        result = session.enter("A")
        assert result.state is SessionState.PRESENTING
        assert result.presentation.text == "Hi"
        assert [c.text for c in result.choices] == ["Hello"]

        result = session.choose(0)
        assert store.get_flag("met_before") is True
        assert result.is_terminal
        assert result.presentation.node_id == "B"
        assert result.presentation.text == "Welcome back"

        again = DialogSession(tree, store)
        result = again.enter("A")
        assert result.presentation is not None
        assert result.presentation.text == "Hi"
        assert result.choices == []
        assert result.is_terminal

    def test_start_uses_start_node(self):
        session = DialogSession(greeting_tree(), ContextStore())
        assert session.start().presentation.node_id == "A"


class TestNodeAvailability:
    """Test entering unknown and conditional nodes."""

    def test_unknown_node_is_terminal_without_presentation(self):
        session = DialogSession(greeting_tree(), ContextStore())
        result = session.enter("nowhere")
        assert result.is_terminal
        assert result.presentation is None

    def test_failed_node_condition(self):
        tree = make_tree({"A": {"text": "Secret", "conditions": ["flag.knows_secret"], "effects": ["set_flag.told"]}})
        store = ContextStore()
        result = DialogSession(tree, store).enter("A")
        assert result.presentation is None
        assert not store.has_flag("told")

    def test_node_effects_apply_on_entry(self):
        tree = make_tree({"A": {"text": "Hi", "effects": ["context.visits=1"]}})
        store = ContextStore()
        DialogSession(tree, store).enter("A")
        assert store.get_context("visits") == 1

    def test_dangling_goto_ends_conversation(self):
        tree = make_tree({"A": {"text": "Hi", "choices": [{"text": "Go", "goto": "missing"}]}})
        session = DialogSession(tree, ContextStore())
        session.enter("A")
        result = session.choose(0)
        assert result.is_terminal
        assert session.state is SessionState.TERMINAL

    def test_null_goto_ends_conversation(self):
        tree = make_tree({"A": {"text": "Hi", "choices": [{"text": "Bye", "goto": None, "effects": ["set_flag.left"]}]}})
        store = ContextStore()
        session = DialogSession(tree, store)
        session.enter("A")
        result = session.choose(0)
        assert result.is_terminal
        assert store.get_flag("left") is True


class TestChoices:
    """Test choice filtering and selection."""

    def test_index_refers_to_filtered_list(self):
        tree = make_tree(
            {
                "A": {
                    "text": "Pick",
                    "choices": [
                        {"text": "Hidden", "goto": "H", "conditions": ["flag.never"]},
                        {"text": "Shown", "goto": "S"},
                    ],
                },
                "H": {"text": "hidden"},
                "S": {"text": "shown"},
            }
        )
        session = DialogSession(tree, ContextStore())
        result = session.enter("A")
        assert [c.text for c in result.choices] == ["Shown"]
        assert session.choose(0).presentation.node_id == "S"

    def test_once_choice_hidden_after_taken(self):
        tree = make_tree(
            {
                "hub": {
                    "text": "Ask away",
                    "choices": [
                        {"text": "Rumors?", "goto": "hub", "once": True},
                        {"text": "Bye", "goto": None},
                    ],
                }
            },
            start="hub",
        )
        session = DialogSession(tree, ContextStore())
        assert len(session.enter("hub").choices) == 2

        result = session.choose(0)
        assert [c.text for c in result.choices] == ["Bye"]
        assert ("test", "hub", 0) in session.once_taken

    def test_once_state_carried_into_new_session(self):
        tree = make_tree({"A": {"text": "x", "choices": [{"text": "Once", "goto": "A", "once": True}, {"text": "Bye"}]}})
        first = DialogSession(tree, ContextStore())
        first.enter("A")
        first.choose(0)

        second = DialogSession(tree, ContextStore(), once_taken=first.once_taken)
        assert [c.text for c in second.enter("A").choices] == ["Bye"]

    @pytest.mark.parametrize("index", [-1, 1, 5, True, "0", 0.0, None])
    def test_invalid_index(self, index):
        session = DialogSession(greeting_tree(), ContextStore())
        session.enter("A")
        with pytest.raises(InvalidChoiceError):
            session.choose(index)
        assert session.state is SessionState.PRESENTING

    def test_choose_before_enter(self):
        session = DialogSession(greeting_tree(), ContextStore())
        with pytest.raises(InvalidChoiceError):
            session.choose(0)

    def test_choose_after_end(self):
        session = DialogSession(greeting_tree(), ContextStore())
        session.enter("A")
        session.end()
        with pytest.raises(InvalidChoiceError):
            session.choose(0)


class TestAutoAdvance:
    """Test auto-advancing chains and the hop budget."""

    def test_chain_is_followed(self):
        tree = make_tree(
            {
                "A": {"text": "one", "autoAdvance": True, "nextNode": "B", "effects": ["set_flag.saw_a"]},
                "B": {"text": "two", "autoAdvance": True, "nextNode": "C"},
                "C": {"text": "three", "choices": [{"text": "ok"}]},
            }
        )
        store = ContextStore()
        result = DialogSession(tree, store).enter("A")
        assert result.presentation.node_id == "C"
        assert [p.node_id for p in result.passed] == ["A", "B"]
        assert store.get_flag("saw_a") is True

    def test_self_loop_exceeds_budget(self):
        tree = make_tree({"X": {"text": "again", "autoAdvance": True, "nextNode": "X", "effects": ["set_flag.looped"]}}, start="X")
        store = ContextStore()
        session = DialogSession(tree, store)

        with pytest.raises(AutoAdvanceBudgetExceeded) as exc_info:
            session.enter("X")

        assert exc_info.value.budget == 32
        assert exc_info.value.chain == ["X"] * 33
        assert session.state is SessionState.ERROR
        assert not store.has_flag("looped")
        assert session.history == []

    def test_budget_error_from_choice_rolls_back(self):
        tree = make_tree(
            {
                "A": {"text": "go", "choices": [{"text": "loop", "goto": "L1", "once": True, "effects": ["set_flag.took"]}]},
                "L1": {"autoAdvance": True, "nextNode": "L2", "effects": ["context.n=1"]},
                "L2": {"autoAdvance": True, "nextNode": "L1"},
            }
        )
        store = ContextStore(context={"n": 0})
        session = DialogSession(tree, store, auto_advance_budget=4)
        session.enter("A")

        with pytest.raises(AutoAdvanceBudgetExceeded) as exc_info:
            session.choose(0)

        assert exc_info.value.chain == ["L1", "L2", "L1", "L2", "L1"]
        assert store.to_dict() == {"flags": {}, "context": {"n": 0}, "quests": {}}
        assert session.once_taken == set()
        assert session.state is SessionState.ERROR
        assert session.history == ["A"]

    def test_budget_is_configurable(self):
        nodes = {str(i): {"autoAdvance": True, "nextNode": str(i + 1)} for i in range(5)}
        nodes["5"] = {"text": "end of chain"}
        tree = make_tree(nodes, start="0")

        assert DialogSession(tree, ContextStore(), auto_advance_budget=5).start().presentation.node_id == "5"
        with pytest.raises(AutoAdvanceBudgetExceeded):
            DialogSession(tree, ContextStore(), auto_advance_budget=4).start()


class TestAdvance:
    """Test continuing from nodes that wait for input."""

    def test_advance_follows_next_node(self):
        tree = make_tree({"A": {"text": "Listen.", "nextNode": "B"}, "B": {"text": "Done."}})
        session = DialogSession(tree, ContextStore())
        result = session.enter("A")
        assert result.state is SessionState.PRESENTING
        assert result.choices == []

        result = session.advance()
        assert result.presentation.node_id == "B"
        assert result.is_terminal

    def test_advance_when_not_presenting(self):
        session = DialogSession(greeting_tree(), ContextStore())
        with pytest.raises(DialogueError):
            session.advance()


class TestSessionPersistence:
    """Test saving and resuming a session."""

    def test_round_trip(self):
        tree = make_tree({"A": {"text": "x", "choices": [{"text": "Once", "goto": "A", "once": True}, {"text": "Bye"}]}})
        store = ContextStore()
        session = DialogSession(tree, store)
        session.enter("A")
        session.choose(0)

        restored = DialogSession.from_dict(session.to_dict(), tree, store)
        assert restored.once_taken == session.once_taken
        assert restored.current_node_id == "A"
        assert [c.text for c in restored.enter(restored.current_node_id).choices] == ["Bye"]
