import structlog

from app.core.logging import setup_logging


def test_setup_logging_merges_request_context():
    setup_logging()
    processors = structlog.get_config()["processors"]
    assert structlog.contextvars.merge_contextvars in processors
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)
