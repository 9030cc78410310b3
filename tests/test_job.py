"""Tests for EnrichmentJob runs over whole tables."""

from __future__ import annotations

from unittest.mock import MagicMock

import pandas as pd
import pytest

from partfill.clients.lookup import LookupClient
from partfill.core.config import EnrichmentConfig
from partfill.core.enricher import OutcomeKind, RowStatus
from partfill.core.exceptions import ConfigurationError, MissingIdentifierColumnError
from partfill.pipeline.job import EnrichmentJob, EnrichmentSummary

from conftest import URL, FakeClient


def _job(client: FakeClient, **config_kwargs) -> EnrichmentJob:
    config = EnrichmentConfig(enable_progress_bar=False, **config_kwargs)
    return EnrichmentJob(client=client, config=config)


# -- reference scenarios -----------------------------------------------------------


class TestScenarios:
    def test_match_fills_column(self):
        client = FakeClient({"ABC123": {"results": [{"manufacturer": "Acme"}]}})
        table = [["PartNumber", "Manufacturer"], ["ABC123", ""]]

        result = _job(client).run(table, URL)

        assert result.data == [["PartNumber", "Manufacturer"], ["ABC123", "Acme"]]
        assert result.highlighted_cells == []

    def test_no_results_leaves_row_unhighlighted(self):
        client = FakeClient({"XYZ999": {"results": []}})
        table = [["PartNumber", "Manufacturer"], ["XYZ999", ""]]

        result = _job(client).run(table, URL)

        assert result.data[1] == ["XYZ999", ""]
        assert result.highlighted_cells == []
        assert result.outcomes[0].status is RowStatus.NOT_FOUND

    def test_missing_field_flagged(self):
        client = FakeClient({"ABC123": {"results": [{"manufacturer": "Acme"}]}})
        table = [["PartNumber", "Price"], ["ABC123", ""]]

        result = _job(client).run(table, URL)

        assert result.data[1] == ["ABC123", ""]
        assert result.highlighted_cells == [(2, 2)]
        assert result.outcomes[0].cells[2].kind is OutcomeKind.MISSING

    def test_missing_identifier_column_fails_before_lookup(self):
        client = FakeClient()
        table = [["Part", "Manufacturer"], ["ABC123", ""]]

        with pytest.raises(MissingIdentifierColumnError):
            _job(client).run(table, URL)

        assert client.calls == []

    def test_repeated_identifiers_looked_up_each_time(self):
        client = FakeClient({"ABC123": {"results": [{"manufacturer": "Acme"}]}})
        table = [["PartNumber", "Manufacturer"], ["ABC123", ""], ["ABC123", ""]]

        result = _job(client).run(table, URL)

        assert client.calls == [(URL, "ABC123"), (URL, "ABC123")]
        assert [row[1] for row in result.data[1:]] == ["Acme", "Acme"]


# -- row handling --------------------------------------------------------------------


class TestRows:
    def test_blank_identifiers_not_looked_up(self):
        client = FakeClient({"A1": {"results": [{"stock": 2}]}})
        table = [["PartNumber", "Stock"], ["", "x"], ["A1", ""], ["   ", "y"], [None, None]]

        result = _job(client).run(table, URL)

        assert client.calls == [(URL, "A1")]
        assert result.data[1] == ["", "x"]
        assert result.data[3] == ["   ", "y"]
        assert result.data[4] == [None, None]
        assert result.summary.rows_skipped == 3

    def test_rows_never_dropped(self):
        client = FakeClient({"B": {"results": [{"manufacturer": "Bee"}]}})
        table = [["PartNumber", "Manufacturer"], ["A", ""], ["", ""], ["B", ""], ["C", "keep"]]

        result = _job(client).run(table, URL)

        assert [row[0] for row in result.data] == ["PartNumber", "A", "", "B", "C"]
        assert result.data[4] == ["C", "keep"]
        assert [o.row_number for o in result.outcomes] == [2, 3, 4, 5]

    def test_input_table_not_mutated(self):
        client = FakeClient({"A": {"results": [{"manufacturer": "Acme"}]}})
        table = [["PartNumber", "Manufacturer"], ["A", ""]]

        _job(client).run(table, URL)

        assert table == [["PartNumber", "Manufacturer"], ["A", ""]]

    def test_header_only_table(self):
        result = _job(FakeClient()).run([["PartNumber", "Stock"]], URL)
        assert result.data == [["PartNumber", "Stock"]]
        assert result.summary.total_rows == 0

    def test_empty_table_is_structural_error(self):
        with pytest.raises(MissingIdentifierColumnError):
            _job(FakeClient()).run([], URL)

    def test_client_exception_is_row_local(self):
        client = MagicMock()
        client.lookup.side_effect = [
            RuntimeError("boom"),
            LookupClient.parse_payload({"results": [{"stock": 1}]}),
        ]
        table = [["PartNumber", "Stock"], ["A", "old"], ["B", ""]]

        result = _job(client).run(table, URL)

        assert result.data[1] == ["A", "old"]
        assert result.data[2] == ["B", "1"]
        assert result.summary.lookup_errors == 1
        assert result.errors[0].row_index == 2
        assert "boom" in result.errors[0].message


# -- summary ---------------------------------------------------------------------------


class TestSummary:
    def test_counts(self):
        client = FakeClient({
            "A": {"results": [{"manufacturer": "Acme"}]},
            "B": {"results": []},
            "C": ConnectionError("refused"),
            "D": {"results": [{"manufacturer": "Dee", "price": {"USD": 3}}]},
        })
        table = [
            ["PartNumber", "Manufacturer", "Price"],
            ["A", "", ""],
            ["B", "", ""],
            ["C", "", ""],
            ["", "", ""],
            ["D", "", ""],
        ]

        result = _job(client).run(table, URL)
        summary = result.summary

        assert summary.total_rows == 5
        assert summary.rows_skipped == 1
        assert summary.rows_processed == 4
        assert summary.rows_matched == 2
        assert summary.rows_not_found == 1
        assert summary.lookup_errors == 1
        assert summary.rows_failed == 2
        assert summary.missing_fields == 1  # A has no price
        assert summary.match_rate == 0.5
        assert result.has_errors
        assert [e.part_number for e in result.errors] == ["C"]

    def test_match_rate_without_lookups(self):
        assert EnrichmentSummary().match_rate == 0.0

    def test_str(self):
        s = str(EnrichmentSummary(rows_processed=2, rows_matched=1, rows_not_found=1))
        assert "1/2 rows matched" in s


# -- url template ------------------------------------------------------------------------


class TestUrlTemplate:
    @pytest.mark.parametrize("template", ["", "   ", "https://catalog.test/api/search?q=LM317"])
    def test_invalid_template(self, template):
        client = FakeClient()
        with pytest.raises(ConfigurationError):
            _job(client).run([["PartNumber"], ["A"]], template)
        assert client.calls == []


# -- concurrency ---------------------------------------------------------------------------


class TestConcurrency:
    def test_order_preserved_with_out_of_order_completion(self):
        parts = [f"P{i}" for i in range(8)]
        # Earlier rows finish last
        delays = {p: 0.02 * (len(parts) - i) for i, p in enumerate(parts)}
        payloads = {p: {"results": [{"manufacturer": f"M-{p}"}]} for p in parts}
        client = FakeClient(payloads, delays)
        table = [["PartNumber", "Manufacturer"]] + [[p, ""] for p in parts]

        result = _job(client, max_workers=4).run(table, URL)

        assert [row[1] for row in result.data[1:]] == [f"M-{p}" for p in parts]
        assert [o.part_number for o in result.outcomes] == parts
        assert sorted(c[1] for c in client.calls) == sorted(parts)

    def test_sequential_order_of_calls(self):
        parts = ["C", "A", "B"]
        client = FakeClient()
        table = [["PartNumber"]] + [[p] for p in parts]

        _job(client, max_workers=1).run(table, URL)

        assert [c[1] for c in client.calls] == parts

    @pytest.mark.asyncio
    async def test_run_async(self):
        client = FakeClient({"A": {"results": [{"lifecycle": "Active"}]}})
        job = _job(client, max_workers=2)

        result = await job.run_async([["PartNumber", "Lifecycle"], ["A", ""]], URL)

        assert result.data[1] == ["A", "Active"]

    @pytest.mark.asyncio
    async def test_run_inside_event_loop_raises(self):
        job = _job(FakeClient())
        with pytest.raises(RuntimeError, match="run_async"):
            job.run([["PartNumber"]], URL)


# -- DataFrame input -------------------------------------------------------------------------


class TestDataFrame:
    def test_output_matches_input_type(self):
        client = FakeClient({"A1": {"results": [{"manufacturer": "Acme", "stock": 10}]}})
        df = pd.DataFrame({
            "PartNumber": ["A1", "B2"],
            "Manufacturer": ["", "Old"],
            "Stock": ["", ""],
            "Notes": ["n1", "n2"],
        })

        result = _job(client).run(df, URL)

        assert isinstance(result.data, pd.DataFrame)
        assert list(result.data.columns) == ["PartNumber", "Manufacturer", "Stock", "Notes"]
        assert result.data.iloc[0].tolist() == ["A1", "Acme", "10", "n1"]
        assert result.data.iloc[1].tolist() == ["B2", "Old", "", "n2"]
        # Original untouched
        assert df.at[0, "Manufacturer"] == ""

    def test_nan_identifier_skipped(self):
        client = FakeClient()
        df = pd.DataFrame({"PartNumber": [None, "X"], "Stock": [None, None]})

        result = _job(client).run(df, URL)

        assert client.calls == [(URL, "X")]
        assert result.summary.rows_skipped == 1

    @pytest.mark.parametrize("dtype", ["string", "object"])
    def test_pd_na_identifier_skipped(self, dtype):
        client = FakeClient({"X": {"results": [{"stock": 1}]}})
        df = pd.DataFrame({"PartNumber": ["X", None], "Stock": ["", ""]}, dtype=dtype)

        result = _job(client).run(df, URL)

        assert client.calls == [(URL, "X")]
        assert result.outcomes[1].status is RowStatus.SKIPPED

    def test_untouched_columns_keep_dtype(self):
        client = FakeClient({"A1": {"results": [{"manufacturer": "Acme"}]}})
        df = pd.DataFrame({
            "PartNumber": ["A1", "B2"],
            "Manufacturer": ["", ""],
            "Qty": [3, 5],
            "Due": pd.to_datetime(["2024-01-01", "2024-02-01"]),
        })

        result = _job(client).run(df, URL)

        assert result.data["Qty"].dtype == df["Qty"].dtype
        assert result.data["Due"].dtype == df["Due"].dtype
        assert result.data["Manufacturer"].tolist() == ["Acme", ""]
        assert list(result.data.index) == list(df.index)


# -- progress ------------------------------------------------------------------------------------


class TestProgress:
    def test_progress_callback(self):
        calls = []
        client = FakeClient()
        table = [["PartNumber"], ["A"], ["B"], ["C"]]

        _job(client, progress_callback=lambda done, total: calls.append((done, total))).run(table, URL)

        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_failing_progress_callback_ignored(self):
        def bad_callback(done, total):
            raise RuntimeError("callback error")

        client = FakeClient({"A": {"results": [{"stock": 3}]}})
        result = _job(client, progress_callback=bad_callback).run([["PartNumber", "Stock"], ["A", ""]], URL)

        assert result.data[1] == ["A", "3"]


# -- construction ---------------------------------------------------------------------------------


class TestConstruction:
    def test_default_client_uses_config_timeout(self):
        job = EnrichmentJob(config=EnrichmentConfig(request_timeout=4.0, enable_progress_bar=False))
        assert job.client.timeout == 4.0
