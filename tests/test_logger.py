"""
Tests for gramaton/logger.py - logger setup.
"""

import logging

import colorlog

from gramaton.logger import setup_gramaton_logger


class TestSetupLogger:
    """Tests for setup_gramaton_logger."""

    def teardown_method(self):
        for handler in logging.getLogger("gramaton").handlers:
            handler.close()
        logging.getLogger("gramaton").handlers.clear()
        logging.getLogger("gramaton").setLevel(logging.NOTSET)

    def test_console_color(self):
        logger = setup_gramaton_logger(log_level=logging.DEBUG)
        assert logger.name == "gramaton"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_console_plain(self):
        logger = setup_gramaton_logger(use_color=False)
        assert not isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_file_logging(self, tmp_path):
        log_file = tmp_path / "gramaton.log"
        logger = setup_gramaton_logger(log_to_file=True, log_to_console=False,
                                       log_file=str(log_file))
        logging.getLogger("gramaton.automaton.builder").info("compiled")
        for handler in logger.handlers:
            handler.flush()
        assert "compiled" in log_file.read_text()

    def test_rerun_replaces_handlers(self):
        setup_gramaton_logger()
        logger = setup_gramaton_logger()
        assert len(logger.handlers) == 1
