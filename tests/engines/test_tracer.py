"""
Tests for the engine invocation tracer.
"""

import logging
from datetime import date
from decimal import Decimal

import pytest

from timebank_engines.tracer import input_fingerprint, traced_engine
from timebank_kernel.exceptions import InvalidWeekIdError


@traced_engine("sample", "2.1", fingerprint_fields=("week_id", "hours"))
def _sample(week_id, hours=Decimal("0"), *, note=None):
    if week_id == "bad":
        raise InvalidWeekIdError(week_id)
    return hours * 2


def _traces(caplog):
    return [r for r in caplog.records if r.getMessage() == "TIMEBANK_ENGINE_TRACE"]


class TestTracedEngine:

    def test_emits_trace_and_returns_result(self, caplog):
        with caplog.at_level(logging.INFO, logger="timebank"):
            assert _sample("2025-W02", Decimal("1.5")) == Decimal("3.0")

        (trace,) = _traces(caplog)
        assert trace.engine_name == "sample"
        assert trace.engine_version == "2.1"
        assert trace.outcome == "ok"
        assert len(trace.input_fingerprint) == 16
        assert not hasattr(trace, "error_code")

    def test_positional_and_keyword_calls_hash_alike(self, caplog):
        with caplog.at_level(logging.INFO, logger="timebank"):
            _sample("2025-W02", Decimal("4"))
            _sample(hours=Decimal("4"), week_id="2025-W02", note="ignored")

        first, second = _traces(caplog)
        assert first.input_fingerprint == second.input_fingerprint

    def test_different_inputs_hash_differently(self, caplog):
        with caplog.at_level(logging.INFO, logger="timebank"):
            _sample("2025-W02", Decimal("4"))
            _sample("2025-W03", Decimal("4"))

        first, second = _traces(caplog)
        assert first.input_fingerprint != second.input_fingerprint

    def test_errors_propagate_with_trace(self, caplog):
        with caplog.at_level(logging.INFO, logger="timebank"):
            with pytest.raises(InvalidWeekIdError):
                _sample("bad")

        (trace,) = _traces(caplog)
        assert trace.outcome == "error"
        assert trace.error_code == "INVALID_WEEK_ID"

    def test_wrapper_keeps_metadata(self):
        assert _sample.__name__ == "_sample"
        assert _sample.engine_name == "sample"


class TestFingerprint:

    def test_mapping_order_does_not_matter(self):
        a = {date(2025, 1, 7): Decimal("1"), date(2025, 1, 6): Decimal("2")}
        b = {date(2025, 1, 6): Decimal("2"), date(2025, 1, 7): Decimal("1")}

        assert input_fingerprint({"days": a}, ("days",)) == input_fingerprint({"days": b}, ("days",))

    def test_missing_field_is_null(self):
        assert input_fingerprint({}, ("week_id",)) == input_fingerprint(
            {"week_id": None}, ("week_id",)
        )
