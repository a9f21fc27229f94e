# tests/test_core/test_logger.py

import json
import logging

from loguru import logger

from tubely.core import logger as logsetup


def _capture(fn):
    seen = []
    sink_id = logger.add(lambda message: seen.append(message.record), level="DEBUG")
    try:
        fn()
    finally:
        logger.remove(sink_id)
    return seen


def test_stdlib_records_keep_their_origin_and_request_id():
    def emit():
        with logger.contextualize(request_id="req-1"):
            logging.getLogger("tubely.services.ingest").info("stored %s", "landscape/a.mp4")

    [record] = _capture(emit)

    assert record["message"] == "stored landscape/a.mp4"
    assert record["extra"]["stdlib_name"] == "tubely.services.ingest"
    assert record["extra"]["request_id"] == "req-1"


def test_json_format_serializes_record():
    [record] = _capture(lambda: logging.getLogger("tubely.media.probe").warning("no streams"))

    template = logsetup._fmt_json(record)
    payload = json.loads(record["extra"]["serialized"])

    assert template == "{extra[serialized]}\n"
    assert payload["logger"] == "tubely.media.probe"
    assert payload["level"] == "WARNING"
    assert payload["message"] == "no streams"
    assert "stdlib_name" not in payload


def test_pretty_format_reads_request_id_from_extra():
    def emit():
        with logger.contextualize(request_id="{not-a-field}"):
            logging.getLogger("tubely.api").info("hello")

    [record] = _capture(emit)
    template = logsetup._fmt_pretty(record)

    assert "tubely.api" in template
    assert "{extra[request_id]}" in template
    assert "{not-a-field}" not in template
