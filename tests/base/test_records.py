"""Tests for the log record model."""

import dataclasses

import pytest

from dualsink.base.records import LogRecord, StackFrame


def test_from_dict_splits_metadata_and_aliases():
    """epoch and package are accepted; unknown keys become metadata."""
    record = LogRecord.from_dict(
        {
            "epoch": 1623247131,
            "severity": "warning",
            "message": "disk low",
            "stack": [{"package": "main", "method": "check"}],
            "host": "web-1",
            "pid": 42,
        }
    )

    assert record.timestamp == 1623247131.0
    assert record.stack == (StackFrame("main", "check"),)
    assert record.metadata == {"host": "web-1", "pid": 42}


def test_from_dict_defaults_timestamp_to_now():
    record = LogRecord.from_dict({"severity": "info", "message": "hi"})

    assert record.timestamp > 1_600_000_000


def test_to_dict_core_fields_win_over_metadata():
    record = LogRecord(
        timestamp=1.5,
        severity="info",
        message="real",
        metadata={"message": "shadow", "host": "h"},
    )

    payload = record.to_dict()

    assert payload == {
        "host": "h",
        "timestamp": 1.5,
        "severity": "info",
        "message": "real",
        "stack": [],
    }


def test_records_are_immutable():
    record = LogRecord(timestamp=0.0, severity="info", message="x")

    with pytest.raises(dataclasses.FrozenInstanceError):
        record.message = "y"


def test_with_stack_accepts_mappings():
    record = LogRecord(timestamp=0.0, severity="info", message="x")

    updated = record.with_stack([{"source_component": "app", "method": "run"}])

    assert updated.stack == (StackFrame("app", "run"),)
    assert record.stack == ()


def test_constructor_coerces_stack_mappings():
    record = LogRecord(
        timestamp=0.0,
        severity="info",
        message="x",
        stack=[{"package": "app", "method": "run"}],
    )

    assert record.stack == (StackFrame("app", "run"),)


def test_non_mapping_frame_is_rejected():
    with pytest.raises(TypeError):
        LogRecord.from_dict({"message": "x", "stack": ["app->run"]})
