"""
Definition Validation - Cross-definition checks for a game.

Validates that:
1. Call rules name the call they answer to
2. Rules are named and can produce something
3. Token fields stay clear of the names reserved for the root

Structural checks (field shapes, counts, triggers) are done by the
pydantic models themselves.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable

from .definitions import RuleDefinition, RuleTrigger, TokenDefinition

RESERVED_PREFIX = "!"


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_definitions(
    token_definitions: Iterable[TokenDefinition],
    rule_definitions: Iterable[RuleDefinition],
) -> ValidationResult:
    """Validate a game's token and rule definitions together."""
    errors: list[str] = []
    warnings: list[str] = []

    for index, token_definition in enumerate(token_definitions):
        for field_name in token_definition.fields:
            if field_name.startswith(RESERVED_PREFIX):
                warnings.append(
                    f"Token definition #{index} declares field '{field_name}' "
                    f"using the reserved '{RESERVED_PREFIX}' prefix"
                )

    for index, rule in enumerate(rule_definitions):
        errors.extend(_validate_rule(index, rule))
        warnings.extend(_rule_warnings(index, rule))

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_rule(index: int, rule: RuleDefinition) -> list[str]:
    errors = []
    if not rule.name:
        errors.append(f"Rule #{index} has an empty name")
    if rule.on == RuleTrigger.CALL and not rule.call_name:
        errors.append(f"Call rule '{rule.name}' has no call_name")
    return errors


def _rule_warnings(index: int, rule: RuleDefinition) -> list[str]:
    warnings = []
    if rule.call_name and rule.on != RuleTrigger.CALL:
        warnings.append(
            f"Rule '{rule.name}' sets call_name but triggers on '{rule.on.value}'; call_name is ignored"
        )
    if rule.fn is None:
        warnings.append(f"Rule '{rule.name}' (#{index}) has no fn and never produces anything")
    return warnings
