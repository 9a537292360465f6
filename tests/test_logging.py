import logging
from datetime import date

import pytest

from app.core.exceptions import StopSellError
from app.core.logging import actor_id, get_logger, log_execution_time, request_id
from app.services.base import ServiceResult

API = "/api/v1"


def test_context_logger_merges_request_context(caplog):
    logger = get_logger("pms.context")
    rid_token = request_id.set("req-1")
    actor_token = actor_id.set("alice")
    try:
        with caplog.at_level(logging.INFO, logger="pms.context"):
            logger.info("rate changed", extra={"actor": "bob"})
    finally:
        actor_id.reset(actor_token)
        request_id.reset(rid_token)

    (record,) = caplog.records
    assert record.request_id == "req-1"
    assert record.actor == "bob"


def test_execution_time_is_logged_and_errors_propagate(caplog):
    @log_execution_time("pms.timing")
    def quote(fail=False):
        if fail:
            raise ValueError("boom")
        return 42

    with caplog.at_level(logging.DEBUG, logger="pms.timing"):
        assert quote() == 42
        with pytest.raises(ValueError):
            quote(fail=True)

    ok, failed = caplog.records
    assert ok.levelno == logging.DEBUG
    assert ok.slow is False
    assert failed.levelno == logging.ERROR
    assert failed.error_type == "ValueError"


def test_service_result_from_exception():
    result = ServiceResult.from_exception(StopSellError(date(2025, 3, 2)))

    assert not result
    assert result.error.code == "STOP_SELL"
    assert ServiceResult.success(1).data == 1


def test_request_id_is_echoed(client):
    response = client.get(f"{API}/health", headers={"X-Request-ID": "trace-7"})

    assert response.headers["X-Request-ID"] == "trace-7"
    assert "X-Process-Time" in response.headers


def test_request_id_is_generated(client):
    response = client.get(f"{API}/health")

    assert len(response.headers["X-Request-ID"]) == 32
