"""
Ops - Declarative effects returned by rule handlers.

Rule handlers never drive the state machine themselves. They return
Ops, which the GameManager interprets after a resolution pass:
1. ChangeState: replace the game state and re-run entry rules
2. AddChoices: advertise a move template to the players
3. FilterChoices: constrain the parameters of an advertised move
"""

from __future__ import annotations
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Optional, Sequence, TYPE_CHECKING, Union

from ..exceptions import InvalidOpError

if TYPE_CHECKING:
    from .choice import Choice


class OpType(Enum):
    """Kinds of ops a rule handler can return."""
    CHANGE_STATE = "change_state"
    ADD_CHOICES = "add_choices"
    FILTER_CHOICES = "filter_choices"


@dataclass(frozen=True)
class ChangeState:
    """Replace the whole game state with new_state (must carry a name)."""
    op_type: ClassVar[OpType] = OpType.CHANGE_STATE

    new_state: Mapping[str, Any]


@dataclass(frozen=True)
class AddChoices:
    """
    Advertise a move.

    `choices` maps each parameter name to a generator called with the
    Choice under construction and returning the candidate values.
    Parameters are resolved in the mapping's order.
    """
    op_type: ClassVar[OpType] = OpType.ADD_CHOICES

    name: str
    player: Any = None
    choices: Mapping[str, Callable[[Choice], Iterable[Any]]] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FilterChoices:
    """
    Constrain the move called `name`.

    `pred` is only enforced once every parameter in `required_params`
    has been chosen.
    """
    op_type: ClassVar[OpType] = OpType.FILTER_CHOICES

    name: str
    required_params: Sequence[str]
    pred: Callable[[Choice], bool]


Op = Union[ChangeState, AddChoices, FilterChoices]

OP_CLASSES = (ChangeState, AddChoices, FilterChoices)


def flatten_ops(results: Iterable[Any]) -> list[Op]:
    """
    Flatten handler results into one list of ops.

    Each result may be a single op or an iterable of ops.
    """
    ops: list[Op] = []
    for result in results:
        items = [result] if isinstance(result, OP_CLASSES) else result
        if not isinstance(items, Iterable) or isinstance(items, (str, bytes, Mapping)):
            raise InvalidOpError(f"Rule returned {result!r}, expected an op or a list of ops")
        for item in items:
            if not isinstance(item, OP_CLASSES):
                raise InvalidOpError(f"Rule returned {item!r}, which is not an op")
            ops.append(item)
    return ops


def first_change_state(ops: Sequence[Op]) -> Optional[ChangeState]:
    for op in ops:
        if isinstance(op, ChangeState):
            return op
    return None
