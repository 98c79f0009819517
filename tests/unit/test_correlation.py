"""Unit tests for correlation ID selection."""

import pytest

from relay_api.middleware.correlation import trace_id_from_traceparent


class TestTraceparent:
    def test_extracts_trace_id(self):
        header = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"

        assert trace_id_from_traceparent(header) == "4bf92f3577b34da6a3ce929d0e0e4736"

    @pytest.mark.parametrize(
        "header",
        [None, "", "garbage", "00-XYZ-00f067aa0ba902b7-01", "00-4bf92f3577b34da6a3ce929d0e0e4736-01"],
    )
    def test_rejects_malformed_headers(self, header):
        assert trace_id_from_traceparent(header) is None
