"""
Pytest fixtures for boardrules tests.
"""

import pytest

from ..config import EngineSettings
from ..engine_core import GameManager, ChangeState, AddChoices
from ..spec_schema import TokenDefinition, RuleDefinition


@pytest.fixture
def settings() -> EngineSettings:
    """Deterministic settings, independent of the environment."""
    return EngineSettings(max_cascade_depth=0, shuffle_seed=1234, validate_moves=False)


@pytest.fixture
def tic_tac_toe_tokens() -> list[TokenDefinition]:
    """A 3x3 board, two player areas and five marks per player."""
    return [
        TokenDefinition(
            fields={"board": {"type": "array", "dimensions": [3, 3]}},
            props={"name": "board"},
        ),
        TokenDefinition(
            fields={"supply": {"type": "single"}},
            props={"name": "player", "owner": "X"},
        ),
        TokenDefinition(
            fields={"supply": {"type": "single"}},
            props={"name": "player", "owner": "O"},
        ),
        TokenDefinition(props={"name": "mark", "symbol": "X"}, count=5),
        TokenDefinition(props={"name": "mark", "symbol": "O"}, count=5),
    ]


def _setup(manager):
    root = manager.root()
    root.find_token("board").move_to(root, "!table")
    for area in root.find_all_tokens("player", "!box"):
        area.move_to(root, "!table")
        symbol = area.props["owner"]
        for mark in root.find_all_tokens({"name": "mark", "symbol": symbol}, "!box"):
            mark.move_to(area, "supply")
    return [ChangeState({"name": "turn", "player": "X"})]


def _free_cells(choice):
    board = choice.manager.root().find_token("board")
    return [
        coords for coords in [(r, c) for r in range(3) for c in range(3)]
        if not board.children("board", coords)
    ]


def _offer_placement(manager):
    player = manager.state["player"]
    return [AddChoices(name="place", player=player, choices={"cell": _free_cells})]


def _place(manager, move):
    root = manager.root()
    area = root.find_token({"name": "player", "owner": move.player}, "!table")
    mark = area.children("supply")[0]
    mark.move_to(root.find_token("board"), "board", move.params["cell"])
    next_player = "O" if move.player == "X" else "X"
    return [ChangeState({"name": "turn", "player": next_player})]


@pytest.fixture
def tic_tac_toe_rules() -> list[RuleDefinition]:
    return [
        RuleDefinition(name="setup", on="entry", state_name="!initial", fn=_setup),
        RuleDefinition(name="offer", on="entry", state_name="turn", fn=_offer_placement),
        RuleDefinition(
            name="place",
            on="choice",
            state_name="turn",
            pred=lambda manager, move: move.name == "place",
            fn=_place,
        ),
        RuleDefinition(
            name="marks_left",
            on="call",
            call_name="marks_left",
            fn=lambda manager, owner: len(
                manager.root().find_token({"name": "player", "owner": owner}).children("supply")
            ),
        ),
    ]


@pytest.fixture
def tic_tac_toe(tic_tac_toe_tokens, tic_tac_toe_rules, settings) -> GameManager:
    """A tic-tac-toe game that has been started."""
    manager = GameManager({"name": "tic-tac-toe"}, tic_tac_toe_tokens, tic_tac_toe_rules, settings)
    manager.start()
    return manager


@pytest.fixture
def deck_game(settings) -> GameManager:
    """Ten numbered cards stacked in a deck, plus an empty hand owned by p1. Not started."""
    tokens = [
        TokenDefinition(fields={"cards": {"type": "single"}}, props={"name": "deck"}),
        TokenDefinition(fields={"cards": {"type": "single"}}, props={"name": "hand", "owner": "p1"}),
    ] + [
        TokenDefinition(props={"name": "card", "value": value}) for value in range(10)
    ]
    manager = GameManager({"name": "cards"}, tokens, [], settings)
    root = manager.root()
    deck = root.find_token("deck")
    for card in root.find_all_tokens("card", "!box"):
        card.move_to(deck, "cards")
    return manager
