import logging

from prd_reviewer.observability.correlation import (
    CorrelationIdFilter,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


def make_record() -> logging.LogRecord:
    return logging.LogRecord("prd_reviewer", logging.INFO, __file__, 1, "hello", None, None)


class TestCorrelationId:
    def test_set_uses_given_value(self):
        assert set_correlation_id("review-1") == "review-1"
        assert get_correlation_id() == "review-1"
        clear_correlation_id()

    def test_set_generates_when_missing(self):
        value = set_correlation_id()
        assert len(value) == 36
        clear_correlation_id()
        assert get_correlation_id() == ""

    def test_filter_attaches_id(self):
        set_correlation_id("review-2")
        record = make_record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "review-2"
        clear_correlation_id()

    def test_filter_uses_dash_outside_context(self):
        clear_correlation_id()
        record = make_record()

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == "-"
