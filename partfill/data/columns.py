"""Column discovery for the partfill enrichment tool.

Turns the header row of a table into a :class:`ColumnMap` (column name ->
1-based position) and holds the static table of columns the engine knows how
to fill from a :class:`~partfill.schemas.part.PartRecord`.

Header format::

    PartNumber, Manufacturer, Description, Lifecycle, Price, Stock, RepresentativeParts, <anything else>

Only ``PartNumber`` is required.  Column names are matched exactly
(case-sensitive) after trimming whitespace; unrecognized columns are passed
through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from operator import attrgetter
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Optional, Tuple

from ..core.exceptions import MissingIdentifierColumnError
from ..schemas.part import PartRecord

logger = logging.getLogger(__name__)

# The lookup key column; never overwritten
IDENTIFIER_COLUMN = "PartNumber"

# Column name -> extractor over the matched record
RECOGNIZED_COLUMNS: Mapping[str, Callable[[PartRecord], Optional[str]]] = MappingProxyType({
    "Manufacturer": attrgetter("manufacturer"),
    "Description": attrgetter("description"),
    "Lifecycle": attrgetter("lifecycle"),
    "Price": attrgetter("price"),
    "Stock": attrgetter("stock"),
    "RepresentativeParts": attrgetter("representative_parts"),
})


class ColumnMap(Mapping[str, int]):
    """Immutable, ordered mapping of column name to 1-based column position.

    Built once per table by :meth:`ColumnMapper.build` and shared read-only
    by every row.  Always contains :data:`IDENTIFIER_COLUMN`.
    """

    def __init__(self, positions: Mapping[str, int]) -> None:
        if IDENTIFIER_COLUMN not in positions:
            raise MissingIdentifierColumnError(IDENTIFIER_COLUMN, list(positions))
        self._positions = MappingProxyType(dict(positions))
        self._names = {position: name for name, position in self._positions.items()}

    def __getitem__(self, name: str) -> int:
        return self._positions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._positions)

    def __len__(self) -> int:
        return len(self._positions)

    @property
    def identifier_position(self) -> int:
        return self._positions[IDENTIFIER_COLUMN]

    def name_at(self, position: int) -> Optional[str]:
        """Column name mapped at *position*, or ``None`` for unmapped positions."""
        return self._names.get(position)

    def recognized(self) -> list[str]:
        """Mapped column names the engine can fill, in header order."""
        return [name for name in self._positions if name in RECOGNIZED_COLUMNS]

    def __repr__(self) -> str:
        return f"ColumnMap({dict(self._positions)!r})"


class ColumnMapper:
    """Builds a :class:`ColumnMap` from a header row."""

    @staticmethod
    def build(header: Iterable[Tuple[Any, int]]) -> ColumnMap:
        """Map header names to positions.

        Args:
            header: ``(name, position)`` pairs from the first row, in column
                order.  Positions are 1-based.

        Returns:
            The column map.

        Raises:
            MissingIdentifierColumnError: If no column is named ``PartNumber``.
        """
        positions: dict[str, int] = {}
        for raw_name, position in header:
            if raw_name is None:
                continue
            name = str(raw_name).strip()
            if not name:
                continue
            if name in positions:
                # Last occurrence wins
                logger.debug(
                    "Duplicate column '%s' at position %d replaces position %d",
                    name, position, positions[name],
                )
            positions[name] = position

        if IDENTIFIER_COLUMN not in positions:
            raise MissingIdentifierColumnError(IDENTIFIER_COLUMN, list(positions))

        column_map = ColumnMap(positions)
        logger.debug("Mapped %d columns: %s", len(column_map), list(column_map))
        return column_map

    @classmethod
    def from_header_row(cls, values: Iterable[Any]) -> ColumnMap:
        """Build from a plain header row, numbering cells from 1."""
        return cls.build((value, position) for position, value in enumerate(values, start=1))
