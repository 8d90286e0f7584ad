"""Tests for effect parsing and application."""

from dialogue_engine.script import apply, apply_all, evaluate, parse_effect
from dialogue_engine.script.model import ContextMutate, ContextRef, MalformedEffect, QuestTransition, SetFlag, ToggleFlag, Value
from dialogue_engine.state import ContextStore, QuestStatus


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now


class TestEffectParsing:
    """Test both effect forms compile to the expected syntax tree."""

    def test_set_and_unset_flag(self):
        assert parse_effect("set_flag.hero_warned") == SetFlag("hero_warned", True)
        assert parse_effect("unset_flag.hero_warned") == SetFlag("hero_warned", False)

    def test_toggle_flag(self):
        assert parse_effect("toggle_flag.lamp") == ToggleFlag("lamp")
        assert parse_effect({"type": "flag", "key": "lamp", "action": "toggle"}) == ToggleFlag("lamp")

    def test_context_assignment(self):
        assert parse_effect("context.gold=10") == ContextMutate("gold", "set", Value(10))
        assert parse_effect("context.door=false") == ContextMutate("door", "set", Value("false"))

    def test_context_assignment_from_reference(self):
        effect = parse_effect("context.last_gold=context.gold")
        assert effect == ContextMutate("last_gold", "set", ContextRef("gold"))

    def test_quest_prefixes(self):
        assert parse_effect("start_quest.lost_ring") == QuestTransition("lost_ring", "start")
        assert parse_effect("complete_quest.lost_ring") == QuestTransition("lost_ring", "complete")
        assert parse_effect("fail_quest.lost_ring") == QuestTransition("lost_ring", "fail")

    def test_object_forms(self):
        assert parse_effect({"type": "flag", "key": "a", "action": "set"}) == SetFlag("a", True)
        assert parse_effect({"type": "flag", "key": "a", "action": "unset"}) == SetFlag("a", False)
        assert parse_effect({"type": "context", "key": "gold", "action": "add", "value": 5}) == ContextMutate(
            "gold", "add", Value(5)
        )
        assert parse_effect({"type": "quest", "key": "q", "action": "complete"}) == QuestTransition("q", "complete")

    def test_malformed(self):
        assert isinstance(parse_effect("give_item.sword"), MalformedEffect)
        assert isinstance(parse_effect("context.a=b=c"), MalformedEffect)
        assert isinstance(parse_effect("set_flag."), MalformedEffect)
        assert isinstance(parse_effect({"type": "flag", "key": "a", "action": "explode"}), MalformedEffect)
        assert isinstance(parse_effect(None), MalformedEffect)


class TestFlagEffects:
    """Test flag effects and their round trip through conditions."""

    def test_set_then_condition_holds(self):
        store = ContextStore()
        apply("set_flag.x", store)
        assert evaluate("flag.x", store) is True

    def test_unset_then_condition_fails(self):
        store = ContextStore(flags={"x": True})
        apply("unset_flag.x", store)
        assert evaluate("flag.x", store) is False
        assert store.has_flag("x")

    def test_toggle(self):
        store = ContextStore()
        apply("toggle_flag.lamp", store)
        assert store.get_flag("lamp") is True
        apply("toggle_flag.lamp", store)
        assert store.get_flag("lamp") is False


class TestContextEffects:
    """Test context set/add/subtract."""

    def test_set_creates_intermediate_paths(self):
        store = ContextStore()
        apply("context.player.stats.level=3", store)
        assert store.context == {"player": {"stats": {"level": 3}}}

    def test_set_keeps_non_numeric_text_as_string(self):
        """Only numbers are converted; 'false' is stored as text and is truthy."""
        store = ContextStore()
        apply("context.door=false", store)
        apply("context.mood=happy", store)
        assert store.get_context("door") == "false"
        assert store.get_context("mood") == "happy"
        assert evaluate("context.door", store) is True

    def test_set_copies_referenced_flag(self):
        store = ContextStore(flags={"brave": True})
        apply("context.was_brave=flag.brave", store)
        assert store.get_context("was_brave") is True

    def test_set_copies_referenced_value(self):
        store = ContextStore(context={"gold": 12})
        apply("context.saved=context.gold", store)
        assert store.get_context("saved") == 12

    def test_set_from_missing_reference_is_skipped(self):
        store = ContextStore(context={"saved": 1})
        apply("context.saved=context.nothing", store)
        assert store.get_context("saved") == 1

    def test_add_and_subtract(self):
        store = ContextStore(context={"gold": 10})
        apply({"type": "context", "key": "gold", "action": "add", "value": 5}, store)
        assert store.get_context("gold") == 15
        apply({"type": "context", "key": "gold", "action": "subtract", "value": 20}, store)
        assert store.get_context("gold") == -5

    def test_add_to_missing_starts_at_zero(self):
        store = ContextStore()
        apply({"type": "context", "key": "rep.town", "action": "add", "value": 2}, store)
        assert store.get_context("rep.town") == 2

    def test_add_non_numeric_counts_as_zero(self):
        store = ContextStore(context={"gold": "lots"})
        apply({"type": "context", "key": "gold", "action": "add", "value": 3}, store)
        assert store.get_context("gold") == 3

    def test_object_set_stores_value_as_given(self):
        store = ContextStore()
        apply({"type": "context", "key": "mood", "action": "set", "value": "happy"}, store)
        assert store.get_context("mood") == "happy"


class TestQuestEffects:
    """Test quest lifecycle effects."""

    def test_start_then_complete(self):
        clock = FakeClock()
        store = ContextStore(clock=clock)

        apply({"type": "quest", "key": "lost_ring", "action": "start"}, store)
        record = store.get_quest_status("lost_ring")
        assert record.status is QuestStatus.ACTIVE
        assert record.started == 1000.0

        clock.now = 2000.0
        apply("complete_quest.lost_ring", store)
        record = store.get_quest_status("lost_ring")
        assert record.status is QuestStatus.COMPLETED
        assert record.started == 1000.0
        assert record.completed == 2000.0

    def test_fail_without_start_creates_record(self):
        store = ContextStore(clock=FakeClock(5.0))
        apply("fail_quest.escort", store)
        record = store.get_quest_status("escort")
        assert record.status is QuestStatus.FAILED
        assert record.failed == 5.0
        assert record.started is None

    def test_restart_overwrites_record(self):
        clock = FakeClock(1.0)
        store = ContextStore(clock=clock)
        apply("start_quest.q", store)
        apply("complete_quest.q", store)
        clock.now = 9.0
        apply("start_quest.q", store)
        record = store.get_quest_status("q")
        assert record.status is QuestStatus.ACTIVE
        assert record.started == 9.0
        assert record.completed is None


class TestEffectLists:
    """Test applying lists of effects."""

    def test_applied_in_order(self):
        store = ContextStore()
        apply_all(["context.gold=1", {"type": "context", "key": "gold", "action": "add", "value": 4}], store)
        assert store.get_context("gold") == 5

    def test_malformed_is_a_no_op(self):
        store = ContextStore(flags={"a": True})
        apply_all(["launch_rockets", "set_flag.b"], store)
        assert store.flags == {"a": True, "b": True}

    def test_none_is_empty(self):
        store = ContextStore()
        apply_all(None, store)
        assert store.to_dict() == {"flags": {}, "context": {}, "quests": {}}
