"""Shared fixtures for the partfill tests."""

from __future__ import annotations

import threading
import time
from typing import Any

import pytest

from partfill.clients.lookup import LookupClient, LookupResult
from partfill.core.config import EnrichmentConfig

URL = "https://catalog.test/api/search?q={part_number}"


class FakeClient:
    """Lookup client that answers from canned JSON payloads.

    ``payloads`` maps part number -> decoded response body; part numbers not
    in the map get ``{"results": []}``.  An ``Exception`` instance as payload
    is returned as a lookup error.  Every call is recorded in ``calls``.
    """

    def __init__(self, payloads: dict[str, Any] | None = None, delays: dict[str, float] | None = None):
        self.payloads = payloads or {}
        self.delays = delays or {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def lookup(self, url_template: str, part_number: str) -> LookupResult:
        with self._lock:
            self.calls.append((url_template, part_number))
        if part_number in self.delays:
            time.sleep(self.delays[part_number])
        payload = self.payloads.get(part_number, {"results": []})
        if isinstance(payload, Exception):
            return LookupResult.error(str(payload))
        return LookupClient.parse_payload(payload, part_number)


@pytest.fixture
def quiet_config() -> EnrichmentConfig:
    return EnrichmentConfig(enable_progress_bar=False)


@pytest.fixture
def full_result() -> dict[str, Any]:
    return {
        "manufacturer": "Texas Instruments",
        "description": "IC REG LINEAR POS ADJ 1.5A TO220-3",
        "lifecycle": "Active",
        "price": {"USD": 0.62, "EUR": 0.57},
        "stock": 15230,
        "representativeParts": [{"partNumber": "LM317TG"}, {"partNumber": "LM317T-DG"}],
    }


ENV_VARS = (
    "PARTFILL_MAX_WORKERS",
    "PARTFILL_REQUEST_TIMEOUT",
    "PARTFILL_LOG_LEVEL",
    "PARTFILL_LOG_DIR",
    "PARTFILL_PROGRESS_BAR",
    "PARTFILL_URL_TEMPLATE",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Unset PARTFILL_* variables and run from an empty directory.

    Each variable is set then deleted so monkeypatch also removes anything
    a loaded .env file adds during the test.
    """
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch
