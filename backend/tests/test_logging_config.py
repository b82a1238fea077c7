from __future__ import annotations

import json
import logging

import pytest

from appshare.config import Settings
from appshare.logging_config import build_formatter, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    uvicorn_error = logging.getLogger("uvicorn.error")
    saved = (list(root.handlers), root.level, list(uvicorn_error.handlers), uvicorn_error.propagate)
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    uvicorn_error.handlers[:] = saved[2]
    uvicorn_error.propagate = saved[3]


def test_records_carry_service_fields() -> None:
    config = Settings(APP_NAME="gallery-api", APP_ENV="production")
    record = logging.LogRecord("appshare.test", logging.INFO, __file__, 1, "Snapshot stored", None, None)
    record.session_id = "s1"

    payload = json.loads(build_formatter(config).format(record))

    assert payload["message"] == "Snapshot stored"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "appshare.test"
    assert payload["service"] == "gallery-api"
    assert payload["env"] == "production"
    assert payload["session_id"] == "s1"


def test_uvicorn_logs_go_through_root_handler(restore_logging) -> None:
    uvicorn_error = logging.getLogger("uvicorn.error")
    uvicorn_error.addHandler(logging.NullHandler())
    uvicorn_error.propagate = False

    setup_logging(Settings(APP_LOG_LEVEL="WARNING"))

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.WARNING
    assert uvicorn_error.handlers == []
    assert uvicorn_error.propagate is True
