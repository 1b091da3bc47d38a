import contextvars
import logging

import pytest

from pigeonrelay import liblog
from pigeonrelay.liblog import (
    DEFAULT_CORRELATION_ID,
    context_logger,
    correlation_id,
    default_logger,
    enrich_context,
    must_enrich_context,
    new_xid,
    parse_xid,
)


def _in_fresh_context(fn):
    return contextvars.Context().run(fn)


def _assert_valid_id(value):
    assert value
    assert len(value) == 20
    assert len(parse_xid(value)) == 12


def test_enrich_keeps_existing_id():
    def scenario():
        first = enrich_context()
        existing = correlation_id()
        enrich_context()
        return first, existing, correlation_id()

    first, existing, after = _in_fresh_context(scenario)
    assert existing == first
    assert after == existing


def test_enrich_on_empty_context_sets_valid_id():
    def scenario():
        enrich_context()
        return correlation_id()

    _assert_valid_id(_in_fresh_context(scenario))


def test_must_enrich_overrides_existing_id():
    def scenario():
        enrich_context()
        before = correlation_id()
        must_enrich_context()
        return before, correlation_id()

    before, after = _in_fresh_context(scenario)
    assert before != after
    _assert_valid_id(after)


def test_must_enrich_on_empty_context_sets_valid_id():
    def scenario():
        returned = must_enrich_context()
        return returned, correlation_id()

    returned, current = _in_fresh_context(scenario)
    assert returned == current
    _assert_valid_id(current)


def test_correlation_id_on_empty_context_is_empty():
    def scenario():
        return correlation_id()

    assert _in_fresh_context(scenario) == ""


def test_correlation_id_with_type_mismatch_is_empty():
    def scenario():
        liblog._correlation_id_var.set(42)
        return correlation_id()

    assert _in_fresh_context(scenario) == ""


def test_correlation_id_with_populated_context():
    def scenario():
        enrich_context()
        return correlation_id()

    _assert_valid_id(_in_fresh_context(scenario))


def test_enrichment_does_not_leak_between_contexts():
    def enrich():
        return must_enrich_context()

    def read():
        return correlation_id()

    enriched = _in_fresh_context(enrich)
    _assert_valid_id(enriched)
    assert _in_fresh_context(read) == ""


def test_new_xid_round_trips_and_is_unique():
    ids = {new_xid() for _ in range(100)}
    assert len(ids) == 100
    for value in ids:
        assert liblog._encode_xid(parse_xid(value)) == value


@pytest.mark.parametrize(
    "value",
    ["", "short", "0123456789abcdefghijw", "ABCDEFGHIJKLMNOPQRST", "zzzzzzzzzzzzzzzzzzzz"],
)
def test_parse_xid_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_xid(value)


def test_default_logger_carries_zero_id():
    logger = default_logger()
    assert logger.extra == {"x-correlation-id": DEFAULT_CORRELATION_ID}
    assert DEFAULT_CORRELATION_ID == "00000000000000000000"


def test_context_logger_carries_current_id():
    def scenario():
        current = must_enrich_context()
        return current, context_logger().extra

    current, extra = _in_fresh_context(scenario)
    assert extra == {"x-correlation-id": current}


def test_context_logger_attaches_id_to_records(caplog):
    def scenario():
        current = must_enrich_context()
        with caplog.at_level(logging.INFO, logger=liblog.LOGGER_NAME):
            context_logger().info("hello")
        return current

    current = _in_fresh_context(scenario)
    records = [r for r in caplog.records if r.getMessage() == "hello"]
    assert len(records) == 1
    assert getattr(records[0], "x-correlation-id") == current