"""Shared pytest fixtures for waforensics tests."""
import sys
sys.dont_write_bytecode = True

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

# 2024-01-01T00:00:00Z
REFERENCE_EPOCH = 1704067200


@pytest.fixture
def reference_time() -> datetime:
    """Fixed capture clock so timestamp-dependent detectors are deterministic."""
    return datetime.fromtimestamp(REFERENCE_EPOCH, tz=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_capture_id():
    """Make sure no capture ID leaks from one test into the next."""
    from waforensics.observability.correlation import capture_id_var

    token = capture_id_var.set("")
    yield
    capture_id_var.reset(token)


@pytest.fixture(autouse=True)
def _capture_package_logs(caplog):
    """Route package log records to caplog.

    Package loggers do not propagate to the root logger, so caplog's handler
    is attached to each of them directly.
    """
    import logging

    loggers = [
        logger
        for name, logger in logging.root.manager.loggerDict.items()
        if name.startswith("waforensics") and isinstance(logger, logging.Logger)
    ]
    for logger in loggers:
        logger.addHandler(caplog.handler)
    yield
    for logger in loggers:
        logger.removeHandler(caplog.handler)
