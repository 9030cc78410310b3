"""
Row merging logic for the partfill enrichment tool.

Takes one data row, the table's column map and the lookup result for the
row's part number, and writes the matched attributes into the row in place.
The identifier cell is never written and unrecognized columns are never
touched; a recognized attribute the catalog left out is blanked and flagged
so it can be highlighted later.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd

from ..clients.lookup import LookupResult, LookupStatus
from ..data.columns import ColumnMap, RECOGNIZED_COLUMNS
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Written into cells whose attribute the catalog did not supply
MISSING_VALUE = ""


class OutcomeKind(str, Enum):
    FILLED = "filled"
    MISSING = "missing"
    UNCHANGED = "unchanged"


class RowStatus(str, Enum):
    SKIPPED = "skipped"
    MATCHED = "matched"
    NOT_FOUND = "not_found"
    LOOKUP_ERROR = "lookup_error"


@dataclass(frozen=True)
class CellOutcome:
    """What enrichment did to one non-identifier cell."""

    kind: OutcomeKind
    value: Optional[str] = None

    @property
    def highlight(self) -> bool:
        """True for cells that need manual attention after the run."""
        return self.kind is OutcomeKind.MISSING


UNCHANGED = CellOutcome(OutcomeKind.UNCHANGED)
MISSING = CellOutcome(OutcomeKind.MISSING, MISSING_VALUE)


@dataclass
class RowOutcome:
    """
    Per-row enrichment record.

    Attributes:
        row_number: Sheet row number (the header is row 1)
        part_number: Identifier as read from the row
        status: Whether the row was skipped, matched, not found or failed
        cells: Column position -> outcome, for every mapped non-identifier column
        error: Reason reported by the lookup for ``LOOKUP_ERROR`` rows
    """

    row_number: int
    part_number: str
    status: RowStatus
    cells: Dict[int, CellOutcome] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def missing_positions(self) -> List[int]:
        return [position for position, cell in self.cells.items() if cell.highlight]

    @property
    def filled_positions(self) -> List[int]:
        return [position for position, cell in self.cells.items() if cell.kind is OutcomeKind.FILLED]


def cell_text(value: Any) -> str:
    """Read a cell as text; empty cells (``None``, NaN, ``pd.NA``, NaT) read as ``""``."""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.api.types.is_scalar(value) and pd.isna(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def get_cell(row: List[Any], position: int) -> Any:
    """Value at 1-based *position*, ``None`` past the end of a short row."""
    return row[position - 1] if position <= len(row) else None


def is_blank_identifier(row: List[Any], column_map: ColumnMap) -> bool:
    """True when the row's part number is empty or whitespace-only."""
    return not cell_text(get_cell(row, column_map.identifier_position)).strip()


class RowEnricher:
    """
    Merges a lookup result into a single row.

    Stateless: one instance can serve every row of every job.  The only
    mutation is to the row passed in, and only for recognized columns of a
    matched row.
    """

    def enrich(self,
               row: List[Any],
               column_map: ColumnMap,
               lookup_result: Optional[LookupResult],
               row_number: int = 0) -> RowOutcome:
        """
        Write the lookup result into *row* according to *column_map*.

        Args:
            row: Mutable list of cell values, position 1 at index 0
            column_map: Column map of the row's table
            lookup_result: Result for the row's part number; ``None`` for rows
                that were never looked up
            row_number: Sheet row number, for reporting only

        Returns:
            RowOutcome describing every mapped non-identifier cell
        """
        part_number = cell_text(get_cell(row, column_map.identifier_position))

        if not part_number.strip() or lookup_result is None:
            return self._unchanged(row_number, part_number, RowStatus.SKIPPED, column_map)

        if not lookup_result.matched:
            status = (RowStatus.LOOKUP_ERROR if lookup_result.status is LookupStatus.ERROR
                      else RowStatus.NOT_FOUND)
            outcome = self._unchanged(row_number, part_number, status, column_map)
            outcome.error = lookup_result.reason
            return outcome

        record = lookup_result.record
        cells: Dict[int, CellOutcome] = {}

        for name, position in column_map.items():
            if position == column_map.identifier_position:
                continue

            extractor = RECOGNIZED_COLUMNS.get(name)
            if extractor is None:
                # Fill only what the catalog defines
                cells[position] = UNCHANGED
                continue

            value = extractor(record)
            if value is None or not value.strip():
                self._write(row, position, MISSING_VALUE)
                cells[position] = MISSING
                logger.debug(f"Row {row_number}: '{part_number}' has no value for {name}")
            else:
                self._write(row, position, value)
                cells[position] = CellOutcome(OutcomeKind.FILLED, value)

        return RowOutcome(row_number, part_number, RowStatus.MATCHED, cells)

    @staticmethod
    def _unchanged(row_number: int, part_number: str, status: RowStatus, column_map: ColumnMap) -> RowOutcome:
        cells = {
            position: UNCHANGED
            for position in column_map.values()
            if position != column_map.identifier_position
        }
        return RowOutcome(row_number, part_number, status, cells)

    @staticmethod
    def _write(row: List[Any], position: int, value: str) -> None:
        if position > len(row):
            row.extend([None] * (position - len(row)))
        row[position - 1] = value
