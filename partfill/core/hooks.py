"""Lifecycle hooks for job observability.

Typed event dataclasses + ``EnrichmentHooks`` container.  Hook callables
are optional; ``_fire_hook`` silently catches errors so observability
failures never crash an enrichment job.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from .config import EnrichmentConfig
    from .enricher import RowOutcome
    from ..pipeline.job import EnrichmentSummary

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JobStartEvent:
    """Fired once after the column map is built, before any lookup."""

    num_rows: int
    columns: list[str]
    url_template: str
    config: EnrichmentConfig


@dataclass(frozen=True)
class RowCompleteEvent:
    """Fired after each data row has been looked up and merged (or skipped)."""

    row_index: int
    outcome: RowOutcome
    elapsed_seconds: float


@dataclass(frozen=True)
class JobEndEvent:
    """Fired once when all rows are done."""

    summary: EnrichmentSummary
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# EnrichmentHooks container
# ---------------------------------------------------------------------------


@dataclass
class EnrichmentHooks:
    """User-facing hook container: pass to ``EnrichmentJob.run()`` / ``run_async()``.

    All fields are optional callables. Sync and async callables both work.
    Hook errors are caught and logged; they never crash the job.
    """

    on_job_start: Optional[Callable[[JobStartEvent], Any]] = None
    on_row_complete: Optional[Callable[[RowCompleteEvent], Any]] = None
    on_job_end: Optional[Callable[[JobEndEvent], Any]] = None


# ---------------------------------------------------------------------------
# Fire helper
# ---------------------------------------------------------------------------


async def _fire_hook(hook: Optional[Callable], event: Any) -> None:
    """Call *hook* with *event*, awaiting if async.  Silently catches errors."""
    if hook is None:
        return
    try:
        result = hook(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.warning("Hook %s raised an exception", hook, exc_info=True)
