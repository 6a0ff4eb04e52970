"""Tests for prettyconf.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from prettyconf.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    configure_logging()


def test_get_logger_returns_children_of_root() -> None:
    assert get_logger().name == "prettyconf"
    assert get_logger("loader").name == "prettyconf.loader"
    assert get_logger("loader").parent is get_logger()


def test_configure_logging_writes_warnings_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    get_logger("printer").debug("hidden")
    get_logger("printer").warning("careful %s", "now")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "[prettyconf] WARNING careful now\n"


def test_configure_logging_verbose_names_component(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(verbose=True)

    get_logger("loader").debug("parsing package %s", "example.com/app")

    assert capsys.readouterr().err == "[prettyconf] DEBUG prettyconf.loader: parsing package example.com/app\n"


def test_configure_logging_file_receives_debug(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    log_file = tmp_path / "logs" / "run.log"
    logger = configure_logging(log_file=log_file)

    get_logger("loader").debug("loaded struct type %s", "pkg.Config")
    for handler in logger.handlers:
        handler.flush()

    assert "DEBUG prettyconf.loader: loaded struct type pkg.Config" in log_file.read_text(encoding="utf-8")
    assert capsys.readouterr().err == ""
    assert logger.handlers[0].level == logging.WARNING


def test_configure_logging_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging(verbose=True)

    assert len(logger.handlers) == 1
