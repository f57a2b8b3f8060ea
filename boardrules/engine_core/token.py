"""
Token - A node of the game's token tree.

Every token except the root sits in exactly one cell of one field of
its parent. Tokens are created by the GameManager only; callers query
and rearrange the tree through the methods below.
"""

from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TYPE_CHECKING, Union

from ..exceptions import FieldAccessError, TokenMoveError
from ..spec_schema import FieldDefinition, TokenDefinition
from .field import (
    Coords,
    access_field,
    create_field,
    get_all_tokens_field,
    valid_coords as field_valid_coords,
)

if TYPE_CHECKING:
    from .manager import GameManager

Pattern = Union[None, str, Mapping[str, Any], Callable[[dict[str, Any]], bool]]


@dataclass(frozen=True)
class ParentLink:
    """Where a token is located: parent id, field name and coordinates."""
    token_id: int
    field: str
    coords: Coords = None


def normalize_coords(coords: Optional[Sequence[int]]) -> Coords:
    """Coordinates are stored as tuples so they compare and hash reliably."""
    return None if coords is None else tuple(coords)


def _is_match(props: Mapping[str, Any], pattern: Mapping[str, Any]) -> bool:
    """Partial deep match: every key in pattern is in props with an equal value."""
    for key, expected in pattern.items():
        if key not in props:
            return False
        actual = props[key]
        if isinstance(expected, Mapping) and isinstance(actual, Mapping):
            if not _is_match(actual, expected):
                return False
        elif actual != expected:
            return False
    return True


class Token:
    """
    A card, a board, a player area: anything that lives in the tree.

    `props` starts as a copy of the definition's props and may be mutated
    freely by rules. Fields are created from the definition and addressed
    by name (and coordinates for array fields).
    """

    def __init__(
        self,
        manager: GameManager,
        parent: Optional[ParentLink],
        token_id: int,
        definition: TokenDefinition,
    ):
        self._manager = manager
        self._parent = parent
        self.id = token_id
        self.definition = definition

        self.props: dict[str, Any] = dict(definition.props)

        self._field_data: dict[str, list] = {
            name: create_field(field_def) for name, field_def in definition.fields.items()
        }

    def __repr__(self) -> str:
        return f"Token(id={self.id}, name={self.props.get('name')!r})"

    # -- Queries ---------------------------------------------------------

    def matches_pattern(self, pattern: Pattern = None) -> bool:
        """
        Match the token's props against a pattern.

        - None (or any empty pattern) matches everything
        - a callable is used as a predicate over props
        - a string matches props["name"]
        - a mapping matches if it is a subset of props
        """
        if not pattern:
            return True
        if callable(pattern):
            return bool(pattern(self.props))
        if isinstance(pattern, str):
            pattern = {"name": pattern}
        return _is_match(self.props, pattern)

    def find_all_tokens(
        self,
        pattern: Pattern = None,
        field: Optional[str] = None,
        coords: Optional[Sequence[int]] = None,
    ) -> list[Token]:
        """
        Return every token in the subtree matching pattern.

        A field (and coords) narrows the search at this level only;
        matching children come first, followed by each child's subtree.
        """
        found: list[Token] = []
        fields_to_search = list(self._field_data) if field is None else [field]

        for field_name in fields_to_search:
            if coords is None:
                ids_under = get_all_tokens_field(
                    self._field_definition(field_name), self._field_data[field_name]
                )
            else:
                ids_under = self._children_ids(field_name, coords)
            tokens_under = [self._manager.get_token(token_id) for token_id in ids_under]

            found.extend(token for token in tokens_under if token.matches_pattern(pattern))
            for token in tokens_under:
                found.extend(token.find_all_tokens(pattern))

        return found

    def find_token(
        self,
        pattern: Pattern = None,
        field: Optional[str] = None,
        coords: Optional[Sequence[int]] = None,
    ) -> Optional[Token]:
        """Like find_all_tokens, but returns only the first match."""
        found = self.find_all_tokens(pattern, field, coords)
        return found[0] if found else None

    def children(self, field: str, coords: Optional[Sequence[int]] = None) -> list[Token]:
        """Immediate children in the addressed cell, in field order."""
        return [self._manager.get_token(token_id) for token_id in self._children_ids(field, coords)]

    def coords(self) -> Coords:
        return self._parent.coords if self._parent else None

    def parent_field(self) -> Optional[str]:
        return self._parent.field if self._parent else None

    def parent_token(self) -> Optional[Token]:
        if self._parent is None:
            return None
        return self._manager.get_token(self._parent.token_id)

    def valid_coords(self, field: str, coords: Optional[Sequence[int]]) -> bool:
        """Check whether field + coords address a cell on this token."""
        return field_valid_coords(self._field_definition(field), normalize_coords(coords))

    def order(self) -> int:
        """Index of this token among the tokens of its cell."""
        return self._sibling_ids().index(self.id)

    def owner(self) -> Any:
        """
        Search up the tree for props["owner"].

        Returns None once the root is reached without finding one.
        """
        token: Optional[Token] = self
        while token is not None and not token.is_root:
            if "owner" in token.props:
                return token.props["owner"]
            token = token.parent_token()
        return None

    @property
    def is_root(self) -> bool:
        return self._parent is None

    # -- Mutation --------------------------------------------------------

    def move_to(self, token: Token, field: str, coords: Optional[Sequence[int]] = None) -> None:
        """
        Move this token to the end of the given field on the given token.

        No cycle check is made: moving a token below itself corrupts the tree.
        """
        if token is None or not field:
            raise TokenMoveError("Must provide token and field")

        coords = normalize_coords(coords)
        # Resolve the destination first so a bad address leaves the tree untouched
        destination = token._children_ids(field, coords)

        parent = self.parent_token()
        if parent is not None:
            parent._remove_child(self)
        destination.append(self.id)
        self._parent = ParentLink(token_id=token.id, field=field, coords=coords)

    def reorder(self, index: int) -> None:
        """Move this token to another index among the tokens of its cell."""
        siblings = self._sibling_ids()
        if index < 0:
            index += len(siblings)
        siblings.remove(self.id)
        siblings.insert(index, self.id)

    def shuffle_field(self, field: str, coords: Optional[Sequence[int]] = None) -> None:
        """Shuffle the order of the tokens in the addressed cell, in place."""
        ids = self._children_ids(field, coords)
        self._manager.random.shuffle(ids)

    # -- Internal --------------------------------------------------------

    def _field_definition(self, field: str) -> FieldDefinition:
        try:
            return self.definition.fields[field]
        except KeyError:
            raise FieldAccessError(
                f"Token {self.id} has no field '{field}'"
            ) from None

    def _children_ids(self, field: str, coords: Optional[Sequence[int]] = None) -> list[int]:
        definition = self._field_definition(field)
        return access_field(definition, self._field_data[field], normalize_coords(coords))

    def _sibling_ids(self) -> list[int]:
        parent = self.parent_token()
        if parent is None:
            raise FieldAccessError("The root token is not located in any field")
        return parent._children_ids(self.parent_field(), self.coords())

    def _add_child(self, token: Token, field: str, coords: Optional[Sequence[int]] = None) -> None:
        coords = normalize_coords(coords)
        self._children_ids(field, coords).append(token.id)
        token._parent = ParentLink(token_id=self.id, field=field, coords=coords)

    def _remove_child(self, token: Token) -> None:
        self._children_ids(token.parent_field(), token.coords()).remove(token.id)
