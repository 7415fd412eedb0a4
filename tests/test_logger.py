# tests/test_logger.py
import io
import json
from datetime import datetime, timezone

import pytest

import lambda_kit.logger as logger_module
from lambda_kit.errors import AppError
from lambda_kit.logger import ConfigurationError, Logger, LogLevel

FIXED_TIME = "2019-08-20T20:12:55.902Z"


@pytest.fixture(autouse=True)
def frozen_time(monkeypatch):
    monkeypatch.setattr(logger_module, "_iso_now", lambda: FIXED_TIME)


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(stream) -> Logger:
    return Logger(name="some-logger", stream=stream, someProperty="some-value")


def read_records(stream: io.StringIO) -> list:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_name_is_required():
    with pytest.raises(ConfigurationError, match="name"):
        Logger()

    # Still a TypeError for callers that catch the broader class
    with pytest.raises(TypeError):
        Logger(name="")


def test_unknown_level_is_rejected():
    with pytest.raises(ConfigurationError):
        Logger(name="x", level="verbose")


def test_logger_defaults_to_info_and_keeps_options_as_fields(logger):
    assert logger.name == "some-logger"
    assert logger.level == "info"
    assert logger.fields == {"name": "some-logger", "someProperty": "some-value"}


def test_supplied_level_is_kept_as_field():
    logger = Logger(name="x", level="debug")

    assert logger.level == "debug"
    assert logger.fields == {"name": "x", "level": "debug"}


def test_child_cannot_set_name(logger):
    with pytest.raises(ConfigurationError, match="child cannot set logger name"):
        logger.child(name="child-logger")


def test_child_merges_fields_over_parent():
    parent = Logger(name="x", b=2)
    child = parent.child(a=1)

    assert child.fields == {"name": "x", "b": 2, "a": 1}
    assert child.name == "x"
    assert child.level == parent.level
    # The parent is untouched
    assert parent.fields == {"name": "x", "b": 2}


def test_grandchild_inherits_every_generation(logger, stream):
    grandchild = logger.child(requestId="abc").child(component="svc", someProperty="override")

    assert grandchild.fields == {
        "name": "some-logger",
        "someProperty": "override",
        "requestId": "abc",
        "component": "svc",
    }
    assert grandchild.stream is stream


def test_is_loggable_compares_against_threshold(logger):
    assert logger.is_loggable("trace") is False
    assert logger.is_loggable("debug") is False
    assert logger.is_loggable("info") is True
    assert logger.is_loggable(LogLevel.WARN) is True
    assert logger.is_loggable("fatal") is True
    assert logger.is_loggable(60) is True


def test_is_loggable_is_false_for_unknown_levels(logger, stream):
    assert logger.is_loggable("verbose") is False

    logger.write_log("verbose", "dropped")
    assert stream.getvalue() == ""


def test_child_of_subclass_keeps_subclass_state(stream):
    class RequestLogger(Logger):
        def __init__(self, *args, request_id=None, **kwargs):
            super().__init__(*args, **kwargs)
            self.request_id = request_id

    parent = RequestLogger(name="x", stream=stream, request_id="req-1")
    child = parent.child(component="svc")

    assert isinstance(child, RequestLogger)
    assert child.request_id == "req-1"
    assert child.fields == {"name": "x", "component": "svc"}
    assert parent.fields == {"name": "x"}


def test_prepare_log_object():
    assert Logger.prepare_log_object({"hello": "world"}) == '{"hello":"world"}\n'


def test_prepare_log_object_falls_back_for_unencodable_records():
    circular = {}
    circular["self"] = circular

    line = Logger.prepare_log_object({"msg": "hi", "level": 30, "data": {(1, 2): "pair"}, "loop": circular})
    record = json.loads(line)

    assert line.endswith("\n")
    assert record["msg"] == "hi"
    assert record["level"] == 30
    assert record["data"] == "{(1, 2): 'pair'}"
    assert record["loop"] == "{'self': {...}}"


def test_prepare_log_object_renders_non_json_values():
    line = Logger.prepare_log_object({
        "at": datetime(2019, 8, 20, 20, 12, 55, tzinfo=timezone.utc),
        "error": AppError("detail", "readable"),
        "plain": KeyError("missing"),
        "obj": object,
    })
    record = json.loads(line)

    assert record["at"] == "2019-08-20T20:12:55+00:00"
    assert record["error"] == {"name": "AppError", "message": "readable", "error": "detail"}
    assert record["plain"] == {"name": "KeyError", "message": "'missing'"}
    assert record["obj"] == "<class 'object'>"


def test_write_log_suppresses_lower_levels(logger, stream):
    logger.trace("nope")
    logger.debug("nope")

    assert stream.getvalue() == ""


def test_write_log_emits_one_json_line_with_envelope(logger, stream):
    logger.info("Hello", data={"x": 1})

    assert stream.getvalue().endswith("\n")
    assert read_records(stream) == [{
        "data": {"x": 1},
        "name": "some-logger",
        "someProperty": "some-value",
        "v": 0,
        "pid": 1,
        "hostname": "aws-lambda",
        "time": FIXED_TIME,
        "level": 30,
        "msg": "Hello",
    }]


def test_envelope_beats_instance_fields_beat_call_fields(stream):
    logger = Logger(name="x", stream=stream, level="trace", color="blue")
    logger.warn("Careful", color="red", v=99, extra=True)

    [record] = read_records(stream)
    assert record["color"] == "blue"
    assert record["v"] == 0
    assert record["level"] == 40
    assert record["extra"] is True


def test_x_rrid_is_renamed(logger, stream):
    logger.error("Failed", **{"x-rrid": "req-123"})

    [record] = read_records(stream)
    assert record["rrid"] == "req-123"
    assert "x-rrid" not in record


@pytest.mark.parametrize("method, value", [
    ("trace", 10), ("debug", 20), ("info", 30), ("warn", 40), ("error", 50), ("fatal", 60),
])
def test_convenience_methods_use_fixed_levels(stream, method, value):
    logger = Logger(name="x", level="trace", stream=stream)
    getattr(logger, method)("message")

    [record] = read_records(stream)
    assert record["level"] == value


def test_defaults_to_stdout(capsys):
    Logger(name="stdout-logger").info("to stdout")

    out = capsys.readouterr().out
    assert json.loads(out)["msg"] == "to stdout"
