from __future__ import annotations

import json
import logging

import structlog

from listino.core import Settings, configure_logging
from listino.core.logging import build_json_formatter


def test_settings_defaults() -> None:
    config = Settings(_env_file=None)
    assert config.default_start_row == 2
    assert config.default_preview_rows == 5
    assert config.csv_encodings == ["utf-8-sig", "cp1251"]
    assert "category" in config.group_header_keywords
    assert config.match_by_supplier_code is True
    assert "app_name" not in Settings.model_fields


def test_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("LISTINO_CSV_ENCODINGS", "utf-8, latin-1")
    monkeypatch.setenv("LISTINO_PRICE_HEADER_KEYWORDS", "Prezzo,Listino")
    monkeypatch.setenv("LISTINO_DEFAULT_START_ROW", "3")
    config = Settings(_env_file=None)
    assert config.csv_encodings == ["utf-8", "latin-1"]
    assert config.price_header_keywords == ["prezzo", "listino"]
    assert config.default_start_row == 3


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.makeLogRecord(
        {"name": "listino.test", "levelname": "INFO", "msg": "riga %s", "args": (3,), "supplier": "acme"}
    )
    payload = json.loads(build_json_formatter().format(record))
    assert payload["event"] == "riga 3"
    assert payload["level"] == "info"
    assert payload["logger"] == "listino.test"
    assert payload["supplier"] == "acme"
    assert "timestamp" in payload


def test_configure_logging_replaces_root_handlers() -> None:
    root = logging.getLogger()
    previous_handlers = list(root.handlers)
    previous_level = root.level
    try:
        configure_logging("debug", structured=True)
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in previous_handlers:
            root.addHandler(handler)
        root.setLevel(previous_level)
