"""
Game Manager - Owns the token tree, the game state and the rules.

The manager is the main entry point for collaborators (UI, bots,
networking). It drives the state machine:

1. start() enters the "!initial" state
2. Entering a state resolves the entry rules
3. Rule ops either change state again (and step 2 repeats) or
   advertise choices and constraints
4. get_choices() hands out Choice objects; perform_move() resolves
   the choice rules against the completed move

Everything runs synchronously. One manager is one game.
"""

from __future__ import annotations
from collections.abc import Mapping
from typing import Any, Iterable, Optional, Sequence, Union
import logging
import random

from ..config import EngineSettings, get_settings
from ..exceptions import (
    DefinitionValidationError,
    InvalidMoveError,
    InvalidStateError,
    StateCascadeError,
    TokenNotFoundError,
)
from ..spec_schema import FieldDefinition, FieldType, RuleDefinition, TokenDefinition, validate_definitions
from .choice import Choice
from .ops import AddChoices, FilterChoices, first_change_state, flatten_ops
from .rules import RuleRegistry, select_rules
from .token import Token

logger = logging.getLogger(__name__)

INITIAL_STATE = "!initial"
TABLE_FIELD = "!table"
BOX_FIELD = "!box"

ROOT_DEFINITION = TokenDefinition(
    fields={
        TABLE_FIELD: FieldDefinition(type=FieldType.SINGLE),
        BOX_FIELD: FieldDefinition(type=FieldType.SINGLE),
    },
    props={"name": "!root"},
)


class GameManager:
    """
    One running game.

    `game_info` is opaque metadata kept for collaborators. Token
    definitions are instantiated `count` times each into the root's
    "!box" field; rule definitions are partitioned by trigger.
    """

    def __init__(
        self,
        game_info: Any,
        token_definitions: Iterable[Union[TokenDefinition, Mapping[str, Any]]],
        rule_definitions: Iterable[Union[RuleDefinition, Mapping[str, Any]]],
        settings: Optional[EngineSettings] = None,
    ):
        self.game_info = game_info
        self.settings = settings or get_settings()
        self.random = random.Random(self.settings.shuffle_seed)

        self.state: dict[str, Any] = {}
        self.global_state: dict[str, Any] = {}

        self._add_choices_ops: list[AddChoices] = []
        self._filter_choices_ops: list[FilterChoices] = []

        self._load_tokens(token_definitions)
        self._load_rules(rule_definitions)
        self._check_definitions()

    # -- Public API ------------------------------------------------------

    def start(self) -> None:
        """Enter the initial state and run the first rule pass."""
        logger.info("Starting game %r", self.game_info)
        self._change_state({"name": INITIAL_STATE}, depth=1)

    def root(self) -> Token:
        return self.get_token(0)

    def get_token(self, token_id: int) -> Token:
        if not 0 <= token_id < len(self._tokens):
            raise TokenNotFoundError(f"No token with id {token_id}")
        return self._tokens[token_id]

    def tokens(self) -> list[Token]:
        """All tokens, in id order (root first)."""
        return list(self._tokens)

    @property
    def rules(self) -> RuleRegistry:
        return self._rules

    @property
    def token_definitions(self) -> list[TokenDefinition]:
        return list(self._token_definitions)

    def get_choices(self) -> list[Choice]:
        """A fresh Choice for every move currently advertised."""
        return [Choice(self, op, self._filter_choices_ops) for op in self._add_choices_ops]

    def perform_move(self, move: Any) -> None:
        """
        Apply a completed move by resolving the choice rules.

        Rules are not filtered by move name; their predicates should
        test `move.name` themselves.
        """
        if self.settings.validate_moves and isinstance(move, Choice):
            if not move.complete():
                raise InvalidMoveError(f"Move '{move.name}' is incomplete: {move.params!r}")
            if not move.valid():
                raise InvalidMoveError(f"Move '{move.name}' has invalid params: {move.params!r}")

        logger.debug("Performing move %r in state %r", move, self.state.get("name"))
        self._apply_rules(self._rules.choice, move)

    def call_rule(self, call_name: str, *args: Any) -> list[Any]:
        """
        Run the call rules named call_name and return their non-empty results.

        Results are returned as-is; they are not interpreted as ops.
        """
        return self._run_rules(self._rules.for_call(call_name), *args)

    # -- Loading ---------------------------------------------------------

    def _load_tokens(self, token_definitions: Iterable[Union[TokenDefinition, Mapping[str, Any]]]) -> None:
        self._token_definitions = [
            definition
            if isinstance(definition, TokenDefinition)
            else TokenDefinition.model_validate(definition)
            for definition in token_definitions
        ]

        root = Token(self, None, 0, ROOT_DEFINITION)
        self._tokens: list[Token] = [root]

        for definition in self._token_definitions:
            for _ in range(definition.count):
                token = Token(self, None, len(self._tokens), definition)
                self._tokens.append(token)
                root._add_child(token, BOX_FIELD)

        logger.debug("Loaded %d tokens from %d definitions", len(self._tokens) - 1, len(self._token_definitions))

    def _load_rules(self, rule_definitions: Iterable[Union[RuleDefinition, Mapping[str, Any]]]) -> None:
        self._rules = RuleRegistry.load(rule_definitions)

    def _check_definitions(self) -> None:
        result = validate_definitions(self._token_definitions, self._rules.all_rules())
        for warning in result.warnings:
            logger.warning(warning)
        if not result.valid:
            raise DefinitionValidationError(result.errors)

    # -- Resolution ------------------------------------------------------

    def _change_state(self, new_state: Mapping[str, Any], depth: int) -> None:
        if not isinstance(new_state, Mapping) or "name" not in new_state:
            raise InvalidStateError(f"State must be a mapping with a 'name', got {new_state!r}")

        limit = self.settings.max_cascade_depth
        if limit and depth > limit:
            raise StateCascadeError(
                f"More than {limit} chained state changes (last target {new_state['name']!r})"
            )

        logger.debug("State %r -> %r", self.state.get("name"), new_state["name"])
        self.state = dict(new_state)
        self._apply_rules(self._rules.entry, depth=depth)

    def _apply_rules(self, rules: Sequence[RuleDefinition], *args: Any, depth: int = 0) -> None:
        ops = flatten_ops(self._run_rules(rules, *args))

        change = first_change_state(ops)
        if change is not None:
            self._change_state(change.new_state, depth=depth + 1)
            return

        self._filter_choices_ops = [op for op in ops if isinstance(op, FilterChoices)]

        add_choices: list[AddChoices] = []
        seen_names: set[str] = set()
        for op in ops:
            if isinstance(op, AddChoices) and op.name not in seen_names:
                seen_names.add(op.name)
                add_choices.append(op)
        self._add_choices_ops = add_choices

        logger.debug(
            "State %r offers moves %s",
            self.state.get("name"), [op.name for op in add_choices],
        )

    def _run_rules(self, rules: Sequence[RuleDefinition], *args: Any) -> list[Any]:
        results = []
        for rule in select_rules(rules, self.state.get("name"), self, *args):
            if rule.fn is None:
                continue
            logger.debug("Running rule %r", rule.name)
            result = rule.fn(self, *args)
            if result:
                results.append(result)
        return results
