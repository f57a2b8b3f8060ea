"""
Rule Registry - Stores rules by trigger and selects which ones run.

Selection for one resolution pass:
1. Keep rules whose state filter matches and whose predicate holds
2. Reverse declaration order, so later rules take precedence
3. Keep only the first rule per name

Declaration order therefore matters: a rule overrides any earlier
applicable rule of the same name.
"""

from __future__ import annotations
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union
import logging

from ..spec_schema import RuleDefinition, RuleTrigger

logger = logging.getLogger(__name__)


@dataclass
class RuleRegistry:
    """Rules partitioned by trigger, each bucket in declaration order."""
    entry: list[RuleDefinition] = field(default_factory=list)
    choice: list[RuleDefinition] = field(default_factory=list)
    call: list[RuleDefinition] = field(default_factory=list)

    @classmethod
    def load(cls, definitions: Iterable[Union[RuleDefinition, Mapping[str, Any]]]) -> RuleRegistry:
        """Validate rule definitions and partition them by trigger."""
        registry = cls()
        for definition in definitions:
            rule = (
                definition
                if isinstance(definition, RuleDefinition)
                else RuleDefinition.model_validate(definition)
            )
            registry.bucket(rule.on).append(rule)
        logger.debug(
            "Loaded rules: %d entry, %d choice, %d call",
            len(registry.entry), len(registry.choice), len(registry.call),
        )
        return registry

    def bucket(self, trigger: RuleTrigger) -> list[RuleDefinition]:
        return {
            RuleTrigger.ENTRY: self.entry,
            RuleTrigger.CHOICE: self.choice,
            RuleTrigger.CALL: self.call,
        }[trigger]

    def for_call(self, call_name: str) -> list[RuleDefinition]:
        """Call rules answering to call_name."""
        return [rule for rule in self.call if rule.call_name == call_name]

    def all_rules(self) -> list[RuleDefinition]:
        return self.entry + self.choice + self.call


def select_rules(
    rules: Iterable[RuleDefinition],
    state_name: Optional[str],
    *pred_args: Any,
) -> list[RuleDefinition]:
    """
    Pick the rules that run in this pass, in the order they run.

    `pred_args` are passed to each predicate (the manager first).
    """
    applicable = [
        rule for rule in rules
        if rule.applies_to_state(state_name)
        and (rule.pred is None or rule.pred(*pred_args))
    ]

    selected: list[RuleDefinition] = []
    seen_names: set[str] = set()
    for rule in reversed(applicable):
        if rule.name in seen_names:
            continue
        seen_names.add(rule.name)
        selected.append(rule)
    return selected
