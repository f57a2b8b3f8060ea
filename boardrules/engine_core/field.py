"""
Fields - Shaped containers of token ids.

Two shapes are supported:
- single: one ordered list (a hand, a deck, a pile)
- array: an N-dimensional grid whose every cell is an ordered list
  (a board where a cell can stack several tokens)

Field data is plain nested lists. The functions at the bottom of this
module dispatch on the definition's type to the matching shape.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from itertools import product
from typing import Iterator, Optional, Sequence

from ..exceptions import FieldAccessError
from ..spec_schema import FieldDefinition, FieldType

Coords = Optional[tuple[int, ...]]


class FieldShape(ABC):
    """Operations on the data of one field shape."""

    @abstractmethod
    def create(self, definition: FieldDefinition) -> list:
        """Return new, empty field data."""

    @abstractmethod
    def access(self, definition: FieldDefinition, data: list, coords: Coords) -> list[int]:
        """Return the cell list at coords (a live reference, not a copy)."""

    @abstractmethod
    def all_tokens(self, definition: FieldDefinition, data: list) -> list[int]:
        """Return every id in the field, flattened in nested iteration order."""

    @abstractmethod
    def valid_coords(self, definition: FieldDefinition, coords: Coords) -> bool:
        """Check whether coords address a cell of this field."""

    @abstractmethod
    def all_coords(self, definition: FieldDefinition) -> list[Coords]:
        """Enumerate every valid coordinate exactly once."""


class SingleShape(FieldShape):
    """A flat ordered list; the only valid coordinate is None."""

    def create(self, definition: FieldDefinition) -> list:
        return []

    def access(self, definition: FieldDefinition, data: list, coords: Coords) -> list[int]:
        if coords is not None:
            raise FieldAccessError(f"Single fields take no coordinates, got {coords!r}")
        return data

    def all_tokens(self, definition: FieldDefinition, data: list) -> list[int]:
        return list(data)

    def valid_coords(self, definition: FieldDefinition, coords: Coords) -> bool:
        return coords is None

    def all_coords(self, definition: FieldDefinition) -> list[Coords]:
        return [None]


class ArrayShape(FieldShape):
    """A grid of ordered lists, fully materialized at creation."""

    def create(self, definition: FieldDefinition) -> list:
        def build(dimensions: Sequence[int]) -> list:
            if not dimensions:
                return []
            return [build(dimensions[1:]) for _ in range(dimensions[0])]

        return build(definition.dimensions)

    def access(self, definition: FieldDefinition, data: list, coords: Coords) -> list[int]:
        if coords is None or len(coords) != len(definition.dimensions):
            raise FieldAccessError(
                f"Array field with dimensions {definition.dimensions} needs "
                f"{len(definition.dimensions)} coordinates, got {coords!r}"
            )
        if any(coord < 0 for coord in coords):
            raise FieldAccessError(f"Negative coordinates are not allowed, got {coords!r}")
        cell = data
        for coord in coords:
            cell = cell[coord]
        return cell

    def all_tokens(self, definition: FieldDefinition, data: list) -> list[int]:
        return list(self._iter_ids(data, len(definition.dimensions)))

    def _iter_ids(self, data: list, depth: int) -> Iterator[int]:
        if depth == 0:
            yield from data
            return
        for sub in data:
            yield from self._iter_ids(sub, depth - 1)

    def valid_coords(self, definition: FieldDefinition, coords: Coords) -> bool:
        if coords is None or len(coords) != len(definition.dimensions):
            return False
        return all(0 <= coord < dim for coord, dim in zip(coords, definition.dimensions))

    def all_coords(self, definition: FieldDefinition) -> list[Coords]:
        return list(product(*(range(dim) for dim in definition.dimensions)))


_SHAPES: dict[FieldType, FieldShape] = {
    FieldType.SINGLE: SingleShape(),
    FieldType.ARRAY: ArrayShape(),
}


def create_field(definition: FieldDefinition) -> list:
    return _SHAPES[definition.type].create(definition)


def access_field(definition: FieldDefinition, data: list, coords: Coords = None) -> list[int]:
    return _SHAPES[definition.type].access(definition, data, coords)


def get_all_tokens_field(definition: FieldDefinition, data: list) -> list[int]:
    return _SHAPES[definition.type].all_tokens(definition, data)


def valid_coords(definition: FieldDefinition, coords: Coords) -> bool:
    return _SHAPES[definition.type].valid_coords(definition, coords)


def get_all_coords(definition: FieldDefinition) -> list[Coords]:
    return _SHAPES[definition.type].all_coords(definition)
