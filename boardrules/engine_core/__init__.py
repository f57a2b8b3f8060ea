"""
Engine Core - Token tree, rule resolution and choice handling.

The engine is the runtime that:
1. Loads token and rule definitions
2. Builds the token tree under a synthesized root
3. Drives the state machine through entry rules
4. Advertises and constrains moves as Choice objects
5. Applies completed moves through choice rules
"""

from .field import (
    FieldShape,
    create_field,
    access_field,
    get_all_tokens_field,
    valid_coords,
    get_all_coords,
)
from .token import Token, ParentLink
from .ops import Op, OpType, ChangeState, AddChoices, FilterChoices
from .rules import RuleRegistry, select_rules
from .choice import Choice, NextChoice
from .manager import GameManager

__all__ = [
    "FieldShape",
    "create_field",
    "access_field",
    "get_all_tokens_field",
    "valid_coords",
    "get_all_coords",
    "Token",
    "ParentLink",
    "Op",
    "OpType",
    "ChangeState",
    "AddChoices",
    "FilterChoices",
    "RuleRegistry",
    "select_rules",
    "Choice",
    "NextChoice",
    "GameManager",
]
