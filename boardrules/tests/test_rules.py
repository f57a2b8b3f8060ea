"""
Tests for rule selection and resolution.

Tests:
- State filters and predicates
- Later rules overriding earlier ones of the same name
- Run order of distinct rules
- Op precedence (state changes over choices)
- Call rules
"""

import pytest

from ..engine_core import (
    AddChoices,
    ChangeState,
    FilterChoices,
    GameManager,
    RuleRegistry,
    select_rules,
)
from ..exceptions import InvalidOpError, InvalidStateError
from ..spec_schema import RuleDefinition, RuleTrigger


def make_manager(rules, settings):
    return GameManager(None, [], rules, settings)


class TestRuleRegistry:
    """Tests for partitioning rules by trigger."""

    def test_partition_keeps_declaration_order(self):
        registry = RuleRegistry.load([
            {"name": "a", "on": "entry", "fn": lambda m: None},
            {"name": "b", "on": "choice", "fn": lambda m, move: None},
            {"name": "c", "on": "entry", "fn": lambda m: None},
            {"name": "d", "on": "call", "call_name": "q", "fn": lambda m: 1},
        ])
        assert [rule.name for rule in registry.entry] == ["a", "c"]
        assert [rule.name for rule in registry.choice] == ["b"]
        assert [rule.name for rule in registry.bucket(RuleTrigger.CALL)] == ["d"]
        assert [rule.name for rule in registry.for_call("q")] == ["d"]
        assert registry.for_call("other") == []


class TestSelectRules:
    """Tests for the selection step of a resolution pass."""

    def test_state_filter(self):
        rules = [
            RuleDefinition(name="any", on="entry"),
            RuleDefinition(name="setup_only", on="entry", state_name="setup"),
            RuleDefinition(name="play_only", on="entry", state_name="play"),
        ]
        selected = select_rules(rules, "play")
        assert {rule.name for rule in selected} == {"any", "play_only"}

    def test_predicate_receives_args(self):
        seen = []

        def pred(manager, move):
            seen.append((manager, move))
            return move == "yes"

        rules = [RuleDefinition(name="r", on="choice", pred=pred)]
        assert select_rules(rules, None, "manager", "yes")
        assert not select_rules(rules, None, "manager", "no")
        assert seen == [("manager", "yes"), ("manager", "no")]

    def test_reverse_declaration_order(self):
        rules = [RuleDefinition(name=name, on="entry") for name in ["a", "b", "c"]]
        assert [rule.name for rule in select_rules(rules, None)] == ["c", "b", "a"]

    def test_latest_applicable_rule_of_a_name_wins(self):
        first = RuleDefinition(name="score", on="entry")
        second = RuleDefinition(name="score", on="entry")
        other = RuleDefinition(name="other", on="entry")
        selected = select_rules([first, other, second], None)
        assert selected[0] is second
        assert selected[1] is other
        assert len(selected) == 2

    def test_inapplicable_override_does_not_hide_earlier_rule(self):
        base = RuleDefinition(name="score", on="entry")
        override = RuleDefinition(name="score", on="entry", pred=lambda manager: False)
        assert select_rules([base, override], None, "manager") == [base]


class TestResolution:
    """Tests for running rules through the manager."""

    def test_duplicate_name_runs_only_latest_once(self, settings):
        calls = []
        rules = [
            RuleDefinition(name="r", on="entry", fn=lambda m: calls.append("first")),
            RuleDefinition(name="r", on="entry", fn=lambda m: calls.append("second")),
        ]
        make_manager(rules, settings).start()
        assert calls == ["second"]

    def test_change_state_reenters_entry_rules(self, settings):
        visited = []

        def record(manager):
            visited.append(manager.state["name"])

        rules = [
            RuleDefinition(name="record", on="entry", fn=record),
            RuleDefinition(
                name="go",
                on="entry",
                state_name="!initial",
                fn=lambda m: [ChangeState({"name": "play", "round": 1})],
            ),
        ]
        manager = make_manager(rules, settings)
        manager.start()

        assert manager.state == {"name": "play", "round": 1}
        assert visited == ["!initial", "play"]

    def test_state_is_replaced_wholesale(self, settings):
        rules = [
            RuleDefinition(
                name="go",
                on="entry",
                state_name="!initial",
                fn=lambda m: ChangeState({"name": "a", "extra": True}),
            ),
            RuleDefinition(
                name="go",
                on="entry",
                state_name="a",
                fn=lambda m: ChangeState({"name": "b"}),
            ),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        assert manager.state == {"name": "b"}

    def test_change_state_discards_choices(self, settings):
        rules = [
            RuleDefinition(name="offer", on="entry", fn=lambda m: AddChoices(name="pass")),
            RuleDefinition(
                name="advance",
                on="entry",
                state_name="!initial",
                fn=lambda m: [ChangeState({"name": "play"})],
            ),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        # The "offer" rule ran again after entering "play"
        assert manager.state["name"] == "play"
        assert [choice.name for choice in manager.get_choices()] == ["pass"]

    def test_choices_from_state_changing_pass_are_dropped(self, settings):
        rules = [
            RuleDefinition(
                name="offer",
                on="entry",
                state_name="!initial",
                fn=lambda m: AddChoices(name="stale"),
            ),
            RuleDefinition(
                name="advance",
                on="entry",
                state_name="!initial",
                fn=lambda m: ChangeState({"name": "play"}),
            ),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        assert manager.state["name"] == "play"
        assert manager.get_choices() == []

    def test_first_change_state_in_run_order_wins(self, settings):
        rules = [
            RuleDefinition(name="early", on="entry", state_name="!initial",
                           fn=lambda m: ChangeState({"name": "early"})),
            RuleDefinition(name="late", on="entry", state_name="!initial",
                           fn=lambda m: ChangeState({"name": "late"})),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        assert manager.state["name"] == "late"

    def test_add_choices_deduplicated_by_move_name(self, settings):
        rules = [
            RuleDefinition(name="a", on="entry", fn=lambda m: AddChoices(name="move", player="old")),
            RuleDefinition(name="b", on="entry", fn=lambda m: AddChoices(name="move", player="new")),
            RuleDefinition(name="c", on="entry", fn=lambda m: AddChoices(name="pass")),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        choices = manager.get_choices()
        assert [choice.name for choice in choices] == ["pass", "move"]
        assert choices[1].player == "new"

    def test_filters_are_kept_for_choices(self, settings):
        rules = [
            RuleDefinition(
                name="offer",
                on="entry",
                fn=lambda m: [
                    AddChoices(name="pick", choices={"n": lambda c: [1, 2, 3, 4]}),
                    FilterChoices(name="pick", required_params=["n"], pred=lambda c: c.params["n"] % 2 == 0),
                ],
            ),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        assert manager.get_choices()[0].next_choice().values == [2, 4]

    def test_falsy_results_are_ignored(self, settings):
        rules = [
            RuleDefinition(name="none", on="entry", fn=lambda m: None),
            RuleDefinition(name="empty", on="entry", fn=lambda m: []),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        assert manager.state == {"name": "!initial"}
        assert manager.get_choices() == []

    def test_non_op_result_fails(self, settings):
        rules = [RuleDefinition(name="bad", on="entry", fn=lambda m: ["oops"])]
        with pytest.raises(InvalidOpError):
            make_manager(rules, settings).start()

    def test_state_without_name_fails(self, settings):
        rules = [
            RuleDefinition(name="bad", on="entry", state_name="!initial",
                           fn=lambda m: ChangeState({"round": 2})),
        ]
        with pytest.raises(InvalidStateError):
            make_manager(rules, settings).start()

    def test_rule_errors_propagate(self, settings):
        def boom(manager):
            raise RuntimeError("rule bug")

        with pytest.raises(RuntimeError, match="rule bug"):
            make_manager([RuleDefinition(name="b", on="entry", fn=boom)], settings).start()


class TestCallRules:
    """Tests for GameManager.call_rule."""

    def test_results_returned_as_is(self, settings):
        rules = [
            RuleDefinition(name="a", on="call", call_name="score", fn=lambda m, p: {"player": p}),
            RuleDefinition(name="b", on="call", call_name="score", fn=lambda m, p: 0),
            RuleDefinition(name="c", on="call", call_name="other", fn=lambda m, p: "x"),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        assert manager.call_rule("score", "p1") == [{"player": "p1"}]

    def test_call_rules_do_not_change_state(self, settings):
        rules = [
            RuleDefinition(name="a", on="call", call_name="jump",
                           fn=lambda m: ChangeState({"name": "elsewhere"})),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        result = manager.call_rule("jump")
        assert manager.state["name"] == "!initial"
        assert result == [ChangeState({"name": "elsewhere"})]

    def test_call_rules_respect_state_filter(self, settings):
        rules = [
            RuleDefinition(name="a", on="call", call_name="q", state_name="play", fn=lambda m: 1),
        ]
        manager = make_manager(rules, settings)
        manager.start()
        assert manager.call_rule("q") == []
