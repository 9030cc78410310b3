"""EnrichmentJob: maps the header, then looks up and merges every data row."""

from __future__ import annotations

import asyncio
import time as _time
from dataclasses import dataclass, field
from typing import Any, Optional

import pandas as pd
from pydantic import BaseModel
from tqdm.auto import tqdm

from ..clients.lookup import PLACEHOLDER, LookupClient, LookupResult
from ..core.config import EnrichmentConfig
from ..core.enricher import (
    OutcomeKind,
    RowEnricher,
    RowOutcome,
    RowStatus,
    cell_text,
    get_cell,
    is_blank_identifier,
)
from ..core.exceptions import ConfigurationError, MissingIdentifierColumnError, RowError
from ..core.hooks import (
    EnrichmentHooks,
    JobEndEvent,
    JobStartEvent,
    RowCompleteEvent,
    _fire_hook,
)
from ..data.columns import IDENTIFIER_COLUMN, ColumnMap, ColumnMapper
from ..utils.logger import get_logger

logger = get_logger(__name__)

Table = list[list[Any]]


class EnrichmentSummary(BaseModel):
    """Aggregate counters for one job run.

    Attributes:
        total_rows: Data rows in the table (header excluded).
        rows_skipped: Rows with a blank part number; never looked up.
        rows_processed: Rows for which a lookup was issued.
        rows_matched: Lookups that returned at least one result.
        rows_failed: Lookups without a match (``rows_not_found + lookup_errors``).
        rows_not_found: Lookups the service answered with no results.
        lookup_errors: Lookups that failed (transport, status, bad JSON).
        missing_fields: Cells left blank and flagged on matched rows.
    """

    total_rows: int = 0
    rows_skipped: int = 0
    rows_processed: int = 0
    rows_matched: int = 0
    rows_failed: int = 0
    rows_not_found: int = 0
    lookup_errors: int = 0
    missing_fields: int = 0

    @property
    def match_rate(self) -> float:
        """Fraction of looked-up rows that matched."""
        if self.rows_processed == 0:
            return 0.0
        return self.rows_matched / self.rows_processed

    @classmethod
    def from_outcomes(cls, outcomes: list[RowOutcome]) -> EnrichmentSummary:
        skipped = sum(1 for o in outcomes if o.status is RowStatus.SKIPPED)
        matched = sum(1 for o in outcomes if o.status is RowStatus.MATCHED)
        not_found = sum(1 for o in outcomes if o.status is RowStatus.NOT_FOUND)
        errors = sum(1 for o in outcomes if o.status is RowStatus.LOOKUP_ERROR)
        return cls(
            total_rows=len(outcomes),
            rows_skipped=skipped,
            rows_processed=len(outcomes) - skipped,
            rows_matched=matched,
            rows_failed=not_found + errors,
            rows_not_found=not_found,
            lookup_errors=errors,
            missing_fields=sum(len(o.missing_positions) for o in outcomes),
        )

    def __str__(self) -> str:
        return (
            f"{self.rows_matched}/{self.rows_processed} rows matched "
            f"({self.rows_not_found} not found, {self.lookup_errors} lookup errors, "
            f"{self.rows_skipped} skipped), {self.missing_fields} missing fields"
        )


@dataclass
class EnrichmentResult:
    """Result from EnrichmentJob.run() / EnrichmentJob.run_async().

    Attributes:
        data: Annotated table; DataFrame or list of rows (matches input type,
            header row included for lists).
        summary: Aggregate counters.
        outcomes: One RowOutcome per data row, in input order.
        column_map: Column map built from the header row.
        errors: Rows whose lookup failed (empty if none did).
    """

    data: pd.DataFrame | Table
    summary: EnrichmentSummary
    outcomes: list[RowOutcome]
    column_map: ColumnMap
    errors: list[RowError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """True if any lookup failed (not-found rows don't count)."""
        return len(self.errors) > 0

    @property
    def highlighted_cells(self) -> list[tuple[int, int]]:
        """``(row_number, column_position)`` of every flagged cell, header = row 1."""
        return [
            (outcome.row_number, position)
            for outcome in self.outcomes
            for position in outcome.missing_positions
        ]

    def header(self) -> list[Any]:
        if isinstance(self.data, pd.DataFrame):
            return list(self.data.columns)
        return list(self.data[0]) if self.data else []

    def rows(self) -> Table:
        """Data rows (header excluded) as lists."""
        if isinstance(self.data, pd.DataFrame):
            return self.data.astype(object).values.tolist()
        return [list(row) for row in self.data[1:]]


class EnrichmentJob:
    """Runs the enrichment of one table.

    Holds only its collaborators and config, so a single instance can run
    any number of tables, one after another or concurrently.  Rows are
    processed concurrently up to ``config.max_workers``; each row's lookup
    and merge happen back to back and outcomes are stored by row position,
    so output order always equals input order.
    """

    def __init__(self,
                 client: Optional[LookupClient] = None,
                 config: Optional[EnrichmentConfig] = None,
                 enricher: Optional[RowEnricher] = None):
        """
        Args:
            client: Catalog client (defaults to a ``LookupClient`` with the
                config's request timeout).  Any object with a
                ``lookup(url_template, part_number)`` method works.
            config: Configuration options (optional, uses defaults if not provided)
            enricher: Row merger (optional)
        """
        self.config = config or EnrichmentConfig()
        self.client = client or LookupClient(timeout=self.config.request_timeout)
        self.enricher = enricher or RowEnricher()

    # -- primary API -----------------------------------------------------

    def run(
        self,
        data: pd.DataFrame | Table,
        url_template: str,
        hooks: EnrichmentHooks | None = None,
    ) -> EnrichmentResult:
        """Synchronous entry point.

        Accepts a DataFrame (column labels form the header) or a list of rows
        whose first row is the header.  Output type matches input type.

        Raises ``RuntimeError`` if called from inside a running event loop
        (use ``await job.run_async(...)`` in that case).
        """
        try:
            asyncio.get_running_loop()
            raise RuntimeError(
                "EnrichmentJob.run() cannot be called from inside an async context. "
                "Use 'await job.run_async(...)' instead."
            )
        except RuntimeError as exc:
            if "run_async" in str(exc):
                raise
        return asyncio.run(self.run_async(data, url_template, hooks=hooks))

    async def run_async(
        self,
        data: pd.DataFrame | Table,
        url_template: str,
        hooks: EnrichmentHooks | None = None,
    ) -> EnrichmentResult:
        """Async entry point: ``await job.run_async(data, url_template)``.

        Args:
            data: Input table as a DataFrame or list of rows (header first).
                Never mutated; the result holds an annotated copy.
            url_template: Catalog URL containing ``{part_number}``.
            hooks: Optional :class:`EnrichmentHooks` for lifecycle callbacks.

        Returns:
            An :class:`EnrichmentResult` with the annotated table, summary and
            per-row outcomes.

        Raises:
            ConfigurationError: If the URL template is empty or has no
                ``{part_number}`` placeholder.
            MissingIdentifierColumnError: If the header has no ``PartNumber``
                column.  Raised before any lookup is attempted.
        """
        hooks = hooks or EnrichmentHooks()
        self._validate_template(url_template)

        header, rows, input_is_frame = self._split_table(data)
        column_map = ColumnMapper.from_header_row(header)

        logger.info(f"Starting enrichment of {len(rows)} rows ({len(column_map.recognized())} fillable columns)")

        await _fire_hook(hooks.on_job_start, JobStartEvent(
            num_rows=len(rows),
            columns=list(column_map),
            url_template=url_template,
            config=self.config,
        ))

        job_start = _time.monotonic()
        outcomes = await self._process_rows(rows, column_map, url_template, hooks)
        elapsed = _time.monotonic() - job_start

        summary = EnrichmentSummary.from_outcomes(outcomes)
        errors = [
            RowError(
                row_index=outcome.row_number,
                part_number=outcome.part_number,
                error_type="LookupError",
                message=outcome.error or "",
            )
            for outcome in outcomes
            if outcome.status is RowStatus.LOOKUP_ERROR
        ]

        logger.info(f"Enrichment complete in {elapsed:.1f}s: {summary}")
        if errors:
            logger.warning(f"{len(errors)} lookups failed")
            for error in errors[:5]:  # Log first 5 errors
                logger.warning(f"  Row {error.row_index} ({error.part_number}): {error.message}")

        await _fire_hook(hooks.on_job_end, JobEndEvent(summary=summary, elapsed_seconds=elapsed))

        if input_is_frame:
            out = self._merge_frame(data, rows, outcomes)
        else:
            out = [list(header)] + rows
        return EnrichmentResult(
            data=out,
            summary=summary,
            outcomes=outcomes,
            column_map=column_map,
            errors=errors,
        )

    # -- execution -------------------------------------------------------

    async def _process_rows(
        self,
        rows: Table,
        column_map: ColumnMap,
        url_template: str,
        hooks: EnrichmentHooks,
    ) -> list[RowOutcome]:
        """Look up and merge all rows, bounded by ``max_workers``."""
        semaphore = asyncio.Semaphore(self.config.max_workers)
        total = len(rows)
        outcomes: list[Optional[RowOutcome]] = [None] * total
        completed = 0

        progress_bar = tqdm(
            total=total,
            desc="Enriching Rows",
            unit="row",
            disable=not self.config.enable_progress_bar,
        )

        async def process(idx: int) -> None:
            nonlocal completed
            async with semaphore:
                row_start = _time.monotonic()
                outcome = await self._process_row(rows[idx], column_map, url_template, idx + 2)
            outcomes[idx] = outcome
            completed += 1
            progress_bar.update(1)

            if self.config.progress_callback:
                try:
                    self.config.progress_callback(completed, total)
                except Exception:
                    logger.warning("Progress callback raised an exception", exc_info=True)

            await _fire_hook(hooks.on_row_complete, RowCompleteEvent(
                row_index=idx,
                outcome=outcome,
                elapsed_seconds=_time.monotonic() - row_start,
            ))

        try:
            await asyncio.gather(*(process(idx) for idx in range(total)))
        finally:
            progress_bar.close()

        return outcomes

    async def _process_row(
        self,
        row: list[Any],
        column_map: ColumnMap,
        url_template: str,
        row_number: int,
    ) -> RowOutcome:
        """One lookup, then one merge; failures stay inside the row."""
        if is_blank_identifier(row, column_map):
            return self.enricher.enrich(row, column_map, None, row_number=row_number)

        part_number = cell_text(get_cell(row, column_map.identifier_position))

        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, self.client.lookup, url_template, part_number)
        except Exception as e:
            logger.error(f"Row {row_number} lookup raised unexpectedly: {e}")
            result = LookupResult.error(f"{type(e).__name__}: {e}")

        if not result.matched:
            logger.debug(f"Row {row_number}: no match for '{part_number}' ({result.status.value})")

        return self.enricher.enrich(row, column_map, result, row_number=row_number)

    # -- helpers ---------------------------------------------------------

    @staticmethod
    def _validate_template(url_template: str) -> None:
        if not url_template or not url_template.strip():
            raise ConfigurationError("Please provide the lookup API URL")
        if PLACEHOLDER not in url_template:
            raise ConfigurationError(
                f"Lookup URL must contain the '{PLACEHOLDER}' placeholder, got: {url_template}"
            )

    @staticmethod
    def _merge_frame(data: pd.DataFrame, rows: Table, outcomes: list[RowOutcome]) -> pd.DataFrame:
        """Copy of *data* with only the written columns replaced.

        Columns the job never wrote keep their original dtype.
        """
        written = sorted({
            position
            for outcome in outcomes
            for position, cell in outcome.cells.items()
            if cell.kind is not OutcomeKind.UNCHANGED
        })
        out = data.copy()
        for position in written:
            out.isetitem(position - 1, [row[position - 1] for row in rows])
        return out

    @staticmethod
    def _split_table(data: pd.DataFrame | Table) -> tuple[list[Any], Table, bool]:
        """Copy the input into a header and mutable row lists."""
        if isinstance(data, pd.DataFrame):
            header = list(data.columns)
            rows = data.astype(object).values.tolist()
            return header, rows, True

        if not data:
            raise MissingIdentifierColumnError(IDENTIFIER_COLUMN)
        header = list(data[0])
        rows = [list(row) for row in data[1:]]
        return header, rows, False
