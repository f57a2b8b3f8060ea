"""
Boardrules - Tabletop Rules Engine

A data-driven engine for encoding tabletop game rules.
Games are described as token and rule definitions; the engine provides:
- A hierarchical token tree with shaped fields (piles, grids)
- A declarative rule dispatcher driving a state machine
- Multi-step choice resolution constrained by rules
"""

from .engine_core import GameManager, Token, Choice, ChangeState, AddChoices, FilterChoices
from .spec_schema import FieldDefinition, TokenDefinition, RuleDefinition

__version__ = "0.1.0"

__all__ = [
    "GameManager",
    "Token",
    "Choice",
    "ChangeState",
    "AddChoices",
    "FilterChoices",
    "FieldDefinition",
    "TokenDefinition",
    "RuleDefinition",
]
