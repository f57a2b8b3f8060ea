"""Game definition schema - game-agnostic token and rule templates."""

from .definitions import (
    FieldType,
    FieldDefinition,
    TokenDefinition,
    RuleTrigger,
    RuleDefinition,
)
from .validation import validate_definitions, ValidationResult, RESERVED_PREFIX

__all__ = [
    "FieldType",
    "FieldDefinition",
    "TokenDefinition",
    "RuleTrigger",
    "RuleDefinition",
    "validate_definitions",
    "ValidationResult",
    "RESERVED_PREFIX",
]
