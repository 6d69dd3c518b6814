from __future__ import annotations

import logging
import re

import orjson
import pytest

from seqsink import (
    EncoderConfig,
    LogInjector,
    LoggerConfig,
    iso8601_time_encoder,
    lowercase_level_encoder,
    rfc3339nano_time_encoder,
    uppercase_level_encoder,
)
from seqsink.encoding import EncodeFields, add_logger_name, add_stack_on_critical, apply_clef_keys

RFC3339_NANO = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,9})?Z$")


class TestEncoders:
    @pytest.mark.parametrize(
        ("timestamp_ns", "expected"),
        [
            (0, "1970-01-01T00:00:00Z"),
            (1, "1970-01-01T00:00:00.000000001Z"),
            (1_700_000_000_120_000_000, "2023-11-14T22:13:20.12Z"),
            (1_700_000_000_123_456_789, "2023-11-14T22:13:20.123456789Z"),
        ],
    )
    def test_rfc3339nano(self, timestamp_ns: int, expected: str) -> None:
        assert rfc3339nano_time_encoder(timestamp_ns) == expected

    def test_iso8601(self) -> None:
        assert iso8601_time_encoder(0) == "1970-01-01T00:00:00+00:00"

    def test_level_encoders(self) -> None:
        assert lowercase_level_encoder("WARNING") == "warning"
        assert uppercase_level_encoder("info") == "INFO"


class TestLoggerConfig:
    @pytest.mark.parametrize(
        ("level", "number"),
        [
            (logging.DEBUG, logging.DEBUG),
            ("debug", logging.DEBUG),
            ("WARNING", logging.WARNING),
            ("nonsense", logging.INFO),
            ("basic_format", logging.INFO),
            ("warn", logging.WARNING),
        ],
    )
    def test_level_number(self, level, number: int) -> None:
        assert LoggerConfig(level=level).level_number == number

    def test_apply_clef_keys_mutates_in_place(self) -> None:
        encoder = EncoderConfig()
        result = apply_clef_keys(encoder)

        assert result is encoder
        assert encoder.time_key == "@t"
        assert encoder.level_key == "@l"
        assert encoder.message_key == "@mt"
        assert encoder.caller_key == "caller"
        assert encoder.stacktrace_key == "trace"
        assert encoder.time_encoder is rfc3339nano_time_encoder


class TestEncodeFields:
    def test_default_keys(self) -> None:
        encode = EncodeFields(EncoderConfig())
        out = encode(None, "info", {"event": "hello", "level": "info", "user": "ada"})

        assert out["event"] == "hello"
        assert out["level"] == "info"
        assert out["user"] == "ada"
        assert "timestamp" in out

    def test_clef_keys(self) -> None:
        encode = EncodeFields(apply_clef_keys(EncoderConfig()))
        out = encode(
            None,
            "error",
            {
                "event": "failed {Op}",
                "level": "error",
                "Op": "save",
                "filename": "app.py",
                "lineno": 12,
                "exception": "Traceback ...\nValueError: boom",
                "@t": "user supplied",
            },
        )

        assert list(out)[:3] == ["@t", "@l", "@mt"]
        assert RFC3339_NANO.match(out["@t"])
        assert out["@l"] == "error"
        assert out["@mt"] == "failed {Op}"
        assert out["caller"] == "app.py:12"
        assert out["trace"].endswith("ValueError: boom")
        assert out["Op"] == "save"
        assert out["@@t"] == "user supplied"
        assert "exception" not in out
        assert "filename" not in out

    def test_stack_and_exception_are_joined(self) -> None:
        encode = EncodeFields(apply_clef_keys(EncoderConfig()))
        out = encode(None, "critical", {"event": "x", "stack": "Stack (most recent call last)", "exception": "Boom"})

        assert out["trace"] == "Stack (most recent call last)\nBoom"

    def test_later_encoder_changes_apply(self) -> None:
        encoder = EncoderConfig()
        encode = EncodeFields(encoder)
        encoder.message_key = "msg"

        assert encode(None, "info", {"event": "hi"})["msg"] == "hi"


def test_add_logger_name() -> None:
    assert add_logger_name(None, "info", {"_name": "app"}) == {"logger": "app"}
    assert add_logger_name(None, "info", {"logger": "kept"}) == {"logger": "kept"}


def test_add_stack_on_critical() -> None:
    assert add_stack_on_critical(None, "critical", {})["stack_info"] is True
    assert "stack_info" not in add_stack_on_critical(None, "error", {})


class TestBuild:
    def test_records_are_clef(self, make_client) -> None:
        client, handler = make_client()
        injector = LogInjector("http://localhost", client=client)
        logger = injector.build(LoggerConfig(level="debug"))

        logger.debug("Hello {Name}", Name="Seq", count=3)
        injector.wait()

        assert len(handler.requests) == 1
        body = handler.requests[0].content
        assert body.endswith(b"\n")
        event = orjson.loads(body)
        assert event["@mt"] == "Hello {Name}"
        assert event["@l"] == "debug"
        assert RFC3339_NANO.match(event["@t"])
        assert event["Name"] == "Seq"
        assert event["count"] == 3
        assert event["caller"].startswith("test_encoding.py:")

    def test_level_filtering(self, make_client) -> None:
        client, handler = make_client()
        injector = LogInjector("http://localhost", client=client)
        logger = injector.build(LoggerConfig(level="warning"))

        logger.info("dropped")
        logger.warning("kept")
        injector.wait()

        assert len(handler.requests) == 1
        assert orjson.loads(handler.requests[0].content)["@l"] == "warning"

    def test_exception_goes_to_trace(self, make_client) -> None:
        client, handler = make_client()
        injector = LogInjector("http://localhost", client=client)
        logger = injector.build()

        try:
            raise ValueError("boom")
        except ValueError:
            logger.exception("Operation failed")
        injector.wait()

        event = orjson.loads(handler.requests[0].content)
        assert event["@l"] == "error"
        assert "ValueError: boom" in event["trace"]

    def test_build_mutates_caller_config(self) -> None:
        config = LoggerConfig()
        injector = LogInjector("http://localhost")
        injector.build(config)
        injector.close()

        assert config.encoder.message_key == "@mt"
        assert config.encoder.time_key == "@t"

    def test_reserved_prefix_is_escaped(self, make_client) -> None:
        client, handler = make_client()
        injector = LogInjector("http://localhost", client=client)
        logger = injector.build()

        logger.info("escaped", **{"@x": 1})
        injector.wait()

        assert orjson.loads(handler.requests[0].content)["@@x"] == 1
