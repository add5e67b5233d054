import logging

import pytest
import structlog
from shared.logging import configure_logging, current_env, get_log_level


@pytest.fixture()
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_level_follows_environment(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setenv("PROTEAN_ENV", "Production")
    assert current_env() == "production"
    assert get_log_level() == "INFO"


def test_console_renderer_prints_tracebacks(monkeypatch, capsys, restore_logging):
    monkeypatch.setenv("PROTEAN_ENV", "development")
    monkeypatch.setenv("LOG_DIR", "")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    configure_logging()

    log = structlog.get_logger("storefront.test")
    try:
        1 / 0
    except ZeroDivisionError:
        log.exception("Broadcast worker crashed", broadcast_id="b-1")

    out = capsys.readouterr().out
    assert "Broadcast worker crashed" in out
    assert "broadcast_id" in out
    assert "ZeroDivisionError" in out


def test_production_renders_json(monkeypatch, capsys, restore_logging):
    monkeypatch.setenv("PROTEAN_ENV", "production")
    monkeypatch.setenv("LOG_DIR", "")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    configure_logging()

    structlog.get_logger("storefront.test").info("Order cancelled", order_number="ORD-1")

    assert '"order_number": "ORD-1"' in capsys.readouterr().out
