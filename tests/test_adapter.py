"""End-to-end tests for LogAdapter."""

import io
import json
import threading

import pytest

from dualsink.base.errors import ConfigurationError, UnknownSeverityError
from dualsink.base.records import LogRecord, StackFrame
from dualsink.core.adapter import LogAdapter
from dualsink.core.config import AdapterOptions, ConsoleMode

EXAMPLE = {
    "epoch": 1623247131,
    "severity": "warning",
    "message": "disk low",
    "stack": [{"source_component": "main", "method": "check"}],
    "host": "web-1",
    "pid": 4242,
}


class RecordingErrors:
    def __init__(self) -> None:
        self.errors = []

    def __call__(self, exc: Exception) -> None:
        self.errors.append(exc)


class FailingSink:
    def write(self, line: str) -> bool:
        raise OSError("disk gone")


def _console(**kwargs):
    stream = io.StringIO()
    adapter = LogAdapter.configure(stream=stream, **kwargs)
    return adapter, stream


def test_default_config_writes_plain_text():
    adapter, stream = _console(stderr_is_tty=False, in_container=False)

    adapter.emit(EXAMPLE)

    assert adapter.config.console == ConsoleMode.TEXT
    assert stream.getvalue() == "2021-06-09T13:58:51.000 W [main->check] disk low\n"
    assert "\x1b[" not in stream.getvalue()


def test_terminal_auto_mode_colours_output():
    adapter, stream = _console(console=True, stderr_is_tty=True, in_container=False)

    adapter.emit(EXAMPLE)

    assert "\x1b[93mdisk low\x1b[0m" in stream.getvalue()


def test_explicit_text_on_terminal_has_no_escape_codes():
    adapter, stream = _console(console="text", stderr_is_tty=True, in_container=False)

    adapter.emit(EXAMPLE)

    assert "\x1b" not in stream.getvalue()


def test_container_console_json_round_trips():
    """JSON output decodes to the record fields plus passthrough metadata."""
    adapter, stream = _console(stderr_is_tty=True, in_container=True)

    adapter.emit(EXAMPLE)

    payload = json.loads(stream.getvalue())
    assert payload == {
        "timestamp": 1623247131.0,
        "severity": "warning",
        "message": "disk low",
        "stack": [{"source_component": "main", "method": "check"}],
        "host": "web-1",
        "pid": 4242,
    }


def test_file_and_console_both_receive_record(tmp_path):
    path = tmp_path / "app.json.log"
    stream = io.StringIO()

    with LogAdapter.configure(
        file=str(path), console="text", stream=stream
    ) as adapter:
        adapter.emit(EXAMPLE)
        adapter.emit({**EXAMPLE, "message": "disk very low"})

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["disk low", "disk very low"]
    assert stream.getvalue().count("\n") == 2


def test_file_only_writes_nothing_to_console(tmp_path):
    stream = io.StringIO()
    adapter = LogAdapter.configure(file=str(tmp_path / "a.json.log"), stream=stream)

    adapter.emit(EXAMPLE)

    assert stream.getvalue() == ""
    assert adapter.console_sink is None


def test_emit_collapses_async_frames(tmp_path):
    path = tmp_path / "app.json.log"
    adapter = LogAdapter.configure(file=str(path))
    record = LogRecord(
        timestamp=0.0,
        severity="info",
        message="tick",
        stack=(
            StackFrame("app", "main"),
            StackFrame("asyncio", "run"),
            StackFrame("asyncio", "_run_once"),
            StackFrame("asyncio", "_run"),
            StackFrame("app", "handler"),
        ),
    )

    adapter.emit(record)
    adapter.close()

    stack = json.loads(path.read_text(encoding="utf-8"))["stack"]
    assert [f["method"] for f in stack] == ["main", "run", "handler"]


def test_collapse_source_option(tmp_path):
    adapter, stream = _console(console="json", collapse_source="Future")

    adapter.emit(
        {
            **EXAMPLE,
            "stack": [{"package": "Future", "method": "then"}, {"package": "Future", "method": "get"}],
        }
    )

    assert len(json.loads(stream.getvalue())["stack"]) == 1


def test_file_failure_does_not_block_console(tmp_path):
    errors = RecordingErrors()
    stream = io.StringIO()
    adapter = LogAdapter.configure(
        file=str(tmp_path / "a.json.log"), console="text", stream=stream, on_error=errors
    )
    adapter.file_sink = FailingSink()

    adapter.emit(EXAMPLE)

    assert "disk low" in stream.getvalue()
    assert isinstance(errors.errors[0], OSError)


def test_unknown_severity_is_reported_and_file_still_written(tmp_path):
    errors = RecordingErrors()
    path = tmp_path / "a.json.log"
    adapter = LogAdapter.configure(
        file=str(path),
        console=True,
        stderr_is_tty=True,
        in_container=False,
        stream=io.StringIO(),
        on_error=errors,
    )

    adapter.emit({**EXAMPLE, "severity": "shouting"})
    adapter.close()

    assert isinstance(errors.errors[0], UnknownSeverityError)
    assert json.loads(path.read_text(encoding="utf-8"))["severity"] == "shouting"


def test_unopenable_file_fails_construction(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        LogAdapter.configure(file=str(blocker / "x.json.log"))


def test_configure_accepts_options_model_and_overrides():
    options = AdapterOptions(console="json")

    adapter = LogAdapter.configure(options, console="text", stream=io.StringIO())

    assert adapter.config.console == ConsoleMode.TEXT
    assert adapter.options.console == "text"


def test_side_channel_defaults_to_stdlib_logger(tmp_path, caplog):
    adapter = LogAdapter.configure(file=str(tmp_path / "a.json.log"))
    adapter.file_sink = FailingSink()

    with caplog.at_level("ERROR", logger="dualsink"):
        adapter.emit(EXAMPLE)

    assert any("disk gone" in message for message in caplog.messages)


def test_concurrent_threads_share_one_file(tmp_path):
    path = tmp_path / "shared.json.log"
    adapter = LogAdapter.configure(file=str(path))

    def worker(name):
        for i in range(100):
            adapter.emit({**EXAMPLE, "message": name * 2000, "seq": i})

    threads = [threading.Thread(target=worker, args=(n,)) for n in "xy"]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    adapter.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 200
    assert all(json.loads(line)["message"] in ("x" * 2000, "y" * 2000) for line in lines)


@pytest.mark.parametrize(
    "record, error_type",
    [
        ({**EXAMPLE, "epoch": None, "timestamp": "yesterday"}, ValueError),
        ({**EXAMPLE, "stack": ["main->check"]}, TypeError),
    ],
)
def test_malformed_records_are_reported_not_raised(record, error_type):
    errors = RecordingErrors()
    adapter, stream = _console(console="text", on_error=errors)

    adapter.emit(record)

    assert stream.getvalue() == ""
    assert isinstance(errors.errors[0], error_type)


def test_record_built_with_mapping_stack_is_written():
    errors = RecordingErrors()
    adapter, stream = _console(console="text", on_error=errors)
    record = LogRecord(
        timestamp=1623247131.0,
        severity="warning",
        message="disk low",
        stack=[{"source_component": "main", "method": "check"}],
    )

    adapter.emit(record)

    assert errors.errors == []
    assert stream.getvalue() == "2021-06-09T13:58:51.000 W [main->check] disk low\n"


def test_surrogate_text_reaches_the_file(tmp_path):
    errors = RecordingErrors()
    path = tmp_path / "a.json.log"
    adapter = LogAdapter.configure(file=str(path), on_error=errors)

    adapter.emit({"severity": "info", "message": "bad name \udcff", "epoch": 1})
    adapter.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert errors.errors == []
    assert len(lines) == 1
    assert json.loads(lines[0])["message"] == "bad name \udcff"
