"""
Exception hierarchy for the rules engine.

Caller-contract violations fail immediately; the engine never catches
errors raised by rule authors' predicates or handlers.
"""


class BoardRulesError(Exception):
    """Base exception for all engine errors."""


class DefinitionValidationError(BoardRulesError):
    """Raised when token or rule definitions fail validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            f"Definition validation failed with {len(errors)} error(s): " + "; ".join(errors)
        )


class FieldAccessError(BoardRulesError, ValueError):
    """Field addressed with an unknown name or coordinates of the wrong shape."""


class TokenMoveError(BoardRulesError, ValueError):
    """A move was requested without a target token or field."""


class TokenNotFoundError(BoardRulesError, LookupError):
    """No token with the requested id."""


class InvalidOpError(BoardRulesError, TypeError):
    """A rule handler returned something that is not an Op."""


class InvalidStateError(BoardRulesError, ValueError):
    """A new game state is not a mapping with a name."""


class InvalidMoveError(BoardRulesError):
    """A submitted move is incomplete or violates its constraints."""


class StateCascadeError(BoardRulesError, RecursionError):
    """Chained state changes exceeded the configured depth limit."""
