"""
Tests for package logging setup.
"""

import logging

import pytest

from profile_views.log_setup import DEBUG_ENV_VAR, debug_enabled_from_env, logger, setup_logging


@pytest.fixture(autouse=True)
def clean_logger():
    saved_level = logger.level
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    yield
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(saved_level)


class TestSetupLogging:

    def test_console_handler_at_info(self, monkeypatch):
        monkeypatch.delenv(DEBUG_ENV_VAR, raising=False)
        setup_logging()
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO

    def test_idempotent(self):
        setup_logging()
        setup_logging(debug_mode=True)
        assert len(logger.handlers) == 1

    def test_debug_from_env(self, monkeypatch):
        monkeypatch.setenv(DEBUG_ENV_VAR, 'yes')
        assert debug_enabled_from_env()
        setup_logging()
        assert logger.level == logging.DEBUG

    def test_file_logging(self, tmp_path):
        log_file = tmp_path / 'logs' / 'profile_views.log'
        setup_logging(log_file_path=str(log_file))
        logging.getLogger('profile_views.selectors').debug('hello')
        for handler in logger.handlers:
            handler.flush()
        assert 'hello' in log_file.read_text(encoding='utf-8')
