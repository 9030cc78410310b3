"""Catalog lookup client: one HTTP GET per part number.

The service is addressed by a caller-supplied URL template containing the
literal token ``{part_number}``::

    client = LookupClient(timeout=10)
    result = client.lookup("https://catalog.example.com/search?q={part_number}", "LM317T")
    if result.matched:
        print(result.record.manufacturer)

Every row-level problem (timeout, connection failure, non-success status,
malformed JSON, empty ``results``) comes back as a non-matching
:class:`LookupResult`; ``lookup`` never raises for them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests
from pydantic import ValidationError

from ..schemas.part import PartRecord

logger = logging.getLogger(__name__)

PLACEHOLDER = "{part_number}"


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one lookup call.

    Attributes:
        status: ``FOUND``, ``NOT_FOUND`` or ``ERROR``.
        record: The first result, only set when ``status`` is ``FOUND``.
        reason: Short description of what went wrong for ``ERROR``.
    """

    status: LookupStatus
    record: Optional[PartRecord] = None
    reason: Optional[str] = None

    @property
    def matched(self) -> bool:
        """True when the service returned at least one result."""
        return self.status is LookupStatus.FOUND

    @classmethod
    def found(cls, record: PartRecord) -> LookupResult:
        return cls(LookupStatus.FOUND, record=record)

    @classmethod
    def not_found(cls) -> LookupResult:
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def error(cls, reason: str) -> LookupResult:
        return cls(LookupStatus.ERROR, reason=reason)


def build_url(url_template: str, part_number: str) -> str:
    """Substitute *part_number* verbatim for every ``{part_number}`` token."""
    return url_template.replace(PLACEHOLDER, part_number)


class LookupClient:
    """Synchronous catalog client backed by ``requests``.

    Safe to share between worker threads: without an injected session every
    call goes through ``requests.get`` and holds no state between calls.
    Nothing is cached, so repeated part numbers are looked up again.
    """

    def __init__(self, timeout: float = 30.0, session: Any = None):
        """
        Args:
            timeout: Seconds to wait for the service before giving up on a row.
            session: Optional object with a ``requests``-style ``get`` method
                (e.g. ``requests.Session``).  Sharing a session across threads
                is the caller's responsibility.
        """
        self.timeout = timeout
        self._http = session if session is not None else requests

    def lookup(self, url_template: str, part_number: str) -> LookupResult:
        """Look up *part_number* and return the first result, if any."""
        url = build_url(url_template, part_number)

        try:
            response = self._http.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.debug("Lookup for '%s' failed: %s", part_number, e)
            return LookupResult.error(f"{type(e).__name__}: {e}")
        except Exception as e:
            # Injected sessions may raise outside the requests hierarchy
            logger.warning("Lookup for '%s' raised unexpectedly: %s", part_number, e)
            return LookupResult.error(f"{type(e).__name__}: {e}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.debug("Lookup for '%s' returned invalid JSON: %s", part_number, e)
            return LookupResult.error(f"Invalid JSON: {e}")

        return self.parse_payload(payload, part_number)

    @staticmethod
    def parse_payload(payload: Any, part_number: str = "") -> LookupResult:
        """Interpret a decoded response body (single-best-match policy)."""
        if not isinstance(payload, dict):
            return LookupResult.error(f"Expected a JSON object, got {type(payload).__name__}")

        results = payload.get("results")
        if not isinstance(results, list) or not results:
            logger.debug("No results for '%s'", part_number)
            return LookupResult.not_found()

        first = results[0]
        if not isinstance(first, dict):
            return LookupResult.error(f"Expected result object, got {type(first).__name__}")

        try:
            record = PartRecord.model_validate(first)
        except ValidationError as e:
            return LookupResult.error(f"Invalid result: {e.error_count()} validation errors")

        return LookupResult.found(record)
