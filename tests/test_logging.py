"""Tests for JSON log formatting and the audit event helpers."""

import json
import logging

import pytest

from tabkeeper import __version__
from tabkeeper import logging as tk_logging
from tabkeeper.logging import (
    TabkeeperJsonFormatter,
    log_config_change,
    log_host_action_failed,
    log_tab_closed,
    log_tab_frozen,
    log_warning_issued,
    setup_logging,
    sweep_logger,
)


def _format(record: logging.LogRecord) -> dict:
    return json.loads(TabkeeperJsonFormatter().format(record))


@pytest.fixture
def record():
    rec = logging.LogRecord(
        name="tabkeeper.sweep",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Tab frozen",
        args=(),
        exc_info=None,
    )
    rec.tab_id = 4
    return rec


class TestJsonFormatter:
    def test_standard_fields(self, record):
        data = _format(record)

        assert data["message"] == "Tab frozen"
        assert data["level"] == "INFO"
        assert data["logger"] == "tabkeeper.sweep"
        assert data["service_version"] == __version__
        assert data["tab_id"] == 4
        assert data["timestamp"].endswith("+00:00")

    def test_instance_id(self, record, monkeypatch):
        monkeypatch.setattr(tk_logging, "_instance_id", None)
        assert "instance_id" not in _format(record)

        monkeypatch.setattr(tk_logging, "_instance_id", "laptop")
        assert _format(record)["instance_id"] == "laptop"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self, monkeypatch):
        monkeypatch.setattr(tk_logging, "_instance_id", None)
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_handler_and_instance_id(self, record):
        setup_logging("warning", instance_id="laptop")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, TabkeeperJsonFormatter)
        assert _format(record)["instance_id"] == "laptop"

    def test_rotating_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "tabkeeper.log"

        setup_logging("INFO", log_file=log_file)
        logging.getLogger("tabkeeper.test").info("written", extra={"tab_id": 3})
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = json.loads(log_file.read_text().splitlines()[-1])
        assert line["message"] == "written"
        assert line["tab_id"] == 3


class TestAuditEvents:
    """Audit helpers attach an event name and the tab context."""

    def test_tab_frozen(self, caplog):
        with caplog.at_level(logging.INFO, logger="tabkeeper.sweep"):
            log_tab_frozen(sweep_logger(), 12, 5.2344)

        rec = caplog.records[-1]
        assert rec.event == "tab_frozen"
        assert rec.tab_id == 12
        assert rec.idle_seconds == 5.234

    def test_tab_closed(self, caplog):
        with caplog.at_level(logging.INFO, logger="tabkeeper.sweep"):
            log_tab_closed(sweep_logger(), 12, 300.0)

        assert caplog.records[-1].event == "tab_closed"
        assert caplog.records[-1].frozen_seconds == 300.0

    def test_warning_without_overlay_omits_foreground(self, caplog):
        log = logging.getLogger("tabkeeper.notify")
        with caplog.at_level(logging.INFO, logger="tabkeeper.notify"):
            log_warning_issued(log, 3, None, 5.0)
            log_warning_issued(log, 3, 1, 5.0)

        skipped, shown = caplog.records[-2:]
        assert not hasattr(skipped, "shown_in_tab_id")
        assert shown.shown_in_tab_id == 1

    def test_host_failure_is_a_warning(self, caplog):
        log = logging.getLogger("tabkeeper.host")
        with caplog.at_level(logging.INFO, logger="tabkeeper.host"):
            log_host_action_failed(log, "remove", 8, "no tab with that id")

        rec = caplog.records[-1]
        assert rec.levelno == logging.WARNING
        assert (rec.action, rec.tab_id, rec.error) == ("remove", 8, "no tab with that id")

    def test_config_change(self, caplog):
        log = logging.getLogger("tabkeeper.config")
        with caplog.at_level(logging.INFO, logger="tabkeeper.config"):
            log_config_change(log, "frozenCloseSeconds", "300", "600")

        rec = caplog.records[-1]
        assert rec.event == "config_change"
        assert (rec.old_value, rec.new_value) == ("300", "600")
