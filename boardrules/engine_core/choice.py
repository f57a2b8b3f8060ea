"""
Choice - A move being built one parameter at a time.

A Choice is created from an AddChoices op. The caller asks for the next
parameter and its legal values, assigns one into `params`, and repeats
until the move is complete. Later parameters may depend on earlier ones:
value generators receive the Choice itself.

Constraints come from FilterChoices ops with the same move name. A
constraint is only enforced once all of its required params are set.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Optional, TYPE_CHECKING

from .ops import AddChoices, FilterChoices

if TYPE_CHECKING:
    from .manager import GameManager


@dataclass
class NextChoice:
    """The next parameter to choose and its currently legal values."""
    name: str
    values: list[Any]


class Choice:
    """
    Pending move for `player`.

    Assign chosen values into `params`; use next_choice(), complete()
    and valid() to drive the process. Hand the finished Choice to
    GameManager.perform_move().
    """

    def __init__(
        self,
        manager: GameManager,
        move: AddChoices,
        filter_ops: Iterable[FilterChoices] = (),
    ):
        self.manager = manager
        self.name = move.name
        self.player = move.player
        self.params: dict[str, Any] = dict(move.params)

        self._choices = dict(move.choices)
        self._filters = [op for op in filter_ops if op.name == self.name]

    def __repr__(self) -> str:
        return f"Choice(name={self.name!r}, player={self.player!r}, params={self.params!r})"

    @property
    def choice_names(self) -> list[str]:
        """Parameter names in resolution order."""
        return list(self._choices)

    def next_choice(self) -> Optional[NextChoice]:
        """Return the first unset parameter with its valid values, or None when complete."""
        if self.complete():
            return None

        choice_name = next(name for name in self._choices if name not in self.params)
        return NextChoice(name=choice_name, values=self._valid_values(choice_name))

    def complete(self) -> bool:
        """True if every parameter has been assigned (valid or not)."""
        return all(name in self.params for name in self._choices)

    def valid(self) -> bool:
        """
        True if every assigned parameter is among its generator's values
        and every enforceable constraint holds.
        """
        chosen = [name for name in self.params if name in self._choices]
        for name in chosen:
            if self.params[name] not in list(self._choices[name](self)):
                return False

        if chosen:
            for op in self._filters:
                if all(param in self.params for param in op.required_params) and not op.pred(self):
                    return False
        return True

    def _valid_values(self, choice_name: str) -> list[Any]:
        values = []
        for value in self._choices[choice_name](self):
            self.params[choice_name] = value
            try:
                if self.valid():
                    values.append(value)
            finally:
                del self.params[choice_name]
        return values
