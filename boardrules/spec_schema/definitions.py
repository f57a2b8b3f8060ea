"""
Definitions - Declarative templates for tokens, fields and rules.

Definitions are immutable once loaded. A TokenDefinition (and the
FieldDefinitions inside it) is shared by reference by every token
instantiated from it.

Plain mappings are accepted wherever a definition is expected:

    TokenDefinition.model_validate({
        "fields": {"board": {"type": "array", "dimensions": [3, 3]}},
        "props": {"name": "board"},
    })
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FieldType(str, Enum):
    """Shapes a field can take."""
    SINGLE = "single"  # One ordered sequence
    ARRAY = "array"  # N-dimensional grid of ordered sequences


class RuleTrigger(str, Enum):
    """What causes a rule to be resolved."""
    ENTRY = "entry"  # Entering a state
    CHOICE = "choice"  # A move was submitted
    CALL = "call"  # Explicit call_rule()


class FieldDefinition(BaseModel):
    """Shape of one named field on a token."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: FieldType
    dimensions: Optional[tuple[int, ...]] = None

    @field_validator("dimensions")
    @classmethod
    def _positive_dimensions(cls, value: Optional[tuple[int, ...]]) -> Optional[tuple[int, ...]]:
        if value is not None and any(dim < 1 for dim in value):
            raise ValueError("dimensions must be positive integers")
        return value

    @model_validator(mode="after")
    def _dimensions_match_type(self) -> FieldDefinition:
        if self.type == FieldType.ARRAY and not self.dimensions:
            raise ValueError("array fields require at least one dimension")
        if self.type == FieldType.SINGLE and self.dimensions is not None:
            raise ValueError("single fields do not take dimensions")
        return self


class TokenDefinition(BaseModel):
    """
    Template for one kind of token.

    `count` tokens are created from this template when a game is loaded.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    fields: dict[str, FieldDefinition] = Field(default_factory=dict)
    props: dict[str, Any] = Field(default_factory=dict)
    count: int = Field(default=1, ge=1)


class RuleDefinition(BaseModel):
    """
    A declarative rule: trigger, optional state filter, predicate and handler.

    Both `pred` and `fn` are called as `(manager, *args)`. `fn` returns
    an Op, a list of Ops, or nothing. For call rules the return value is
    handed back to the caller as-is.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    on: RuleTrigger
    state_name: Optional[str] = None
    pred: Optional[Callable[..., Any]] = None
    fn: Optional[Callable[..., Any]] = None
    call_name: Optional[str] = None

    def applies_to_state(self, state_name: Optional[str]) -> bool:
        """True if the rule has no state filter or the filter matches."""
        return not self.state_name or self.state_name == state_name
