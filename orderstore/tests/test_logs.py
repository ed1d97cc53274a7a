"""Tests for the JSON logging setup."""

import io
import json
import logging

import orderstore.main  # noqa: F401  installs the service-level logger
from orderstore.logs import get_logger
from orderstore.repository import logger as repo_logger


def _redirect(monkeypatch, *loggers):
    stream = io.StringIO()
    for lg in loggers:
        for h in lg.handlers:
            monkeypatch.setattr(h, "stream", stream)
    return stream


def test_one_call_writes_one_line(monkeypatch):
    stream = _redirect(monkeypatch, repo_logger, logging.getLogger("orderstore"))
    repo_logger.info("written once")
    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert [r["message"] for r in lines] == ["written once"]
    assert lines[0]["name"] == "orderstore.repository"


def test_records_carry_request_id_placeholder(monkeypatch):
    lg = get_logger("orderstore.tests")
    stream = _redirect(monkeypatch, lg)
    lg.warning("outside a request")
    record = json.loads(stream.getvalue())
    assert record["request_id"] == "-"
    assert record["levelname"] == "WARNING"


def test_get_logger_installs_a_single_handler():
    first = get_logger("orderstore.tests.handlers")
    second = get_logger("orderstore.tests.handlers")
    assert first is second
    assert len(first.handlers) == 1
    assert first.propagate is False
