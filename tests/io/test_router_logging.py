# tests/io/test_router_logging.py
import json
import logging

from conftest import at, router_cfg
from railnet.app.router import TransitRouter
from railnet.io.router_logging import RouterLogging, _default_json_logger


def test_json_formatter_merges_extra():
    log = _default_json_logger(name="railnet.test-format", level="DEBUG")
    assert len(log.handlers) == 1
    # second call reuses the configured logger
    assert _default_json_logger(name="railnet.test-format").handlers == log.handlers

    rec = log.makeRecord(
        log.name, logging.INFO, __file__, 1, "build_end", (), None, extra={"extra": {"nodes": 3}}
    )
    payload = json.loads(log.handlers[0].format(rec))
    assert payload == {"level": "INFO", "msg": "build_end", "logger": "railnet.test-format", "nodes": 3}


def test_router_build_and_query_are_logged(caplog, parallel_lines):
    logger = logging.getLogger("railnet.test-router")
    hooks = RouterLogging(network="test", logger=logger)
    r = TransitRouter(router_cfg(), hooks=hooks)
    with caplog.at_level(logging.DEBUG, logger="railnet.test-router"):
        r.initialize(parallel_lines)
        r.find_route(at(0, 0), at(10, 0.2))
        r.find_route(at(0, 0), at(0, 0))

    msgs = [rec.getMessage() for rec in caplog.records]
    assert msgs[0] == "build_start"
    assert msgs.count("phase_end") == 5
    assert "build_end" in msgs
    # phase_start / query_start are debug-only
    assert "phase_start" not in msgs and "query_start" not in msgs

    ends = [rec for rec in caplog.records if rec.getMessage() == "query_end"]
    assert [rec.extra["status"] for rec in ends] == ["found", "invalid"]
    assert ends[0].levelname == "INFO" and ends[1].levelname == "WARNING"
    assert all(rec.extra["network"] == "test" for rec in caplog.records)


def test_debug_mode_and_warnings(caplog):
    logger = logging.getLogger("railnet.test-debug")
    hooks = RouterLogging(debug=True, logger=logger)
    with caplog.at_level(logging.DEBUG, logger="railnet.test-debug"):
        hooks.phase_start("merge")
        hooks.warning("line 'Z': skipped", line="Z")
        hooks.build_cancelled(phase="edges")

    got = [(rec.levelname, rec.getMessage()) for rec in caplog.records]
    assert got == [
        ("DEBUG", "phase_start"),
        ("WARNING", "build_warning"),
        ("WARNING", "build_cancelled"),
    ]
    assert caplog.records[1].extra["line"] == "Z"


def test_router_uses_logging_hooks_when_asked():
    r = TransitRouter({"name": "pe", "log": {"level": "WARNING"}}, use_logging=True)
    assert isinstance(r.hooks, RouterLogging)
    assert r.hooks.network == "pe"
