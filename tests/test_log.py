"""Test suite for debug tracing."""

import logging

import pytest

from arangopod.log import TRACED_LOGGERS, is_debug, set_debug


@pytest.fixture(autouse=True)
def reset_debug():
    yield
    set_debug(False)


class TestSetDebug:
    """Test switching debug tracing."""

    def test_enable(self):
        """Test tracing raises the traced loggers to DEBUG."""
        handler = logging.NullHandler()

        set_debug(True, handler)

        assert is_debug()
        for name in TRACED_LOGGERS:
            assert logging.getLogger(name).level == logging.DEBUG
            assert handler in logging.getLogger(name).handlers

    def test_handler_installed_once(self):
        """Test enabling twice keeps one handler."""
        handler = logging.NullHandler()
        set_debug(True, handler)
        set_debug(True, logging.NullHandler())

        assert logging.getLogger("arangopod").handlers.count(handler) == 1
        assert len(logging.getLogger("arangopod").handlers) == 1

    def test_disable(self):
        """Test disabling removes the handler and the level."""
        handler = logging.NullHandler()
        set_debug(True, handler)

        set_debug(False)

        assert not is_debug()
        assert handler not in logging.getLogger("arango").handlers
        assert logging.getLogger("arango").level == logging.NOTSET
