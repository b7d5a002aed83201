import logging

from blehub.logging_config import configure_logging


def test_uvicorn_handlers_bridged_once():
    uvicorn_logger = logging.getLogger('uvicorn.error')
    app_logger = logging.getLogger('blehub')
    handler = logging.NullHandler()
    uvicorn_logger.addHandler(handler)
    try:
        configure_logging()
        configure_logging()
        assert app_logger.handlers.count(handler) == 1
        assert app_logger.propagate is False
    finally:
        uvicorn_logger.removeHandler(handler)
        app_logger.removeHandler(handler)
        app_logger.propagate = True


def test_client_libraries_quieted(monkeypatch):
    monkeypatch.delenv('BLEHUB_LIB_LOG_LEVEL', raising=False)
    configure_logging()
    assert logging.getLogger('botocore').level == logging.WARNING
    assert logging.getLogger('bleak').level == logging.WARNING
