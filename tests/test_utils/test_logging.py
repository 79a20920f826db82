"""
Tests for the package logging helpers.
"""

import io
import logging
from typing import Iterator

import pytest

from contract_helper.utils.logging import (
    ROOT_LOGGER_NAME,
    StructuredFormatter,
    configure_logging,
    disable_logging,
    get_logger,
    set_level,
)


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestGetLogger:
    def test_nests_under_package(self) -> None:
        assert get_logger("tests.thing").name == f"{ROOT_LOGGER_NAME}.tests.thing"

    def test_package_names_unchanged(self) -> None:
        assert get_logger("contract_helper.client").name == "contract_helper.client"
        assert get_logger(ROOT_LOGGER_NAME).name == ROOT_LOGGER_NAME

    def test_silent_by_default(self) -> None:
        handlers = logging.getLogger(ROOT_LOGGER_NAME).handlers

        assert any(isinstance(h, logging.NullHandler) for h in handlers)


class TestConfigureLogging:
    def test_extra_fields_rendered(self) -> None:
        stream = io.StringIO()
        configure_logging(logging.DEBUG, stream=stream, fmt="%(levelname)s %(message)s")

        get_logger("contract_helper.client").info("Flushing lazy calls", extra={"size": 3, "chain": "evm"})

        assert stream.getvalue().strip() == "INFO Flushing lazy calls [chain='evm' size=3]"

    def test_replaces_previous_handler(self) -> None:
        first = io.StringIO()
        second = io.StringIO()
        configure_logging(stream=first)
        configure_logging(stream=second)

        get_logger("contract_helper.test").warning("once")

        assert first.getvalue() == ""
        assert "once" in second.getvalue()

    def test_level(self) -> None:
        stream = io.StringIO()
        configure_logging(stream=stream)
        set_level(logging.ERROR)

        get_logger("contract_helper.test").warning("dropped")

        assert stream.getvalue() == ""

    def test_disable(self) -> None:
        stream = io.StringIO()
        configure_logging(stream=stream)
        disable_logging()

        get_logger("contract_helper.test").critical("dropped")

        assert stream.getvalue() == ""


def test_formatter_without_extra() -> None:
    record = logging.LogRecord("contract_helper", logging.INFO, __file__, 1, "plain", (), None)

    assert StructuredFormatter("%(message)s").format(record) == "plain"
