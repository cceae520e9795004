"""日志配置测试"""
import logging
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from telemetry_bridge.core.logging_config import (
    DEFAULT_LEVEL, VERBOSE, ThrottledLogger, configure_logging,
    log_verbose, parse_log_level,
)


class TestParseLogLevel:
    """级别名称解析"""

    @pytest.mark.parametrize('name,expected', [
        ('error', logging.ERROR),
        ('ERROR', logging.ERROR),
        ('warn', logging.WARNING),
        ('warning', logging.WARNING),
        ('info', logging.INFO),
        ('verbose', VERBOSE),
        ('debug', logging.DEBUG),
        ('10', 10),
        (20, 20),
    ])
    def test_known_levels(self, name, expected):
        assert parse_log_level(name) == expected

    def test_unknown_falls_back_to_default(self):
        assert parse_log_level('chatty') == DEFAULT_LEVEL
        assert parse_log_level(None) == DEFAULT_LEVEL
        assert parse_log_level('chatty', logging.INFO) == logging.INFO

    def test_default_is_error(self):
        assert DEFAULT_LEVEL == logging.ERROR

    def test_verbose_level_name(self):
        assert logging.getLevelName(VERBOSE) == 'VERBOSE'


class TestConfigureLogging:
    """全局日志配置"""

    def test_configure_returns_resolved_level(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, 'basicConfig', lambda **kwargs: calls.append(kwargs))

        assert configure_logging('info') == logging.INFO
        assert calls[0]['level'] == logging.INFO
        assert calls[0]['force'] is True

    def test_configure_unknown_level_uses_default(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, 'basicConfig', lambda **kwargs: calls.append(kwargs))

        assert configure_logging('loud') == DEFAULT_LEVEL

    def test_log_verbose(self, caplog):
        logger = logging.getLogger('telemetry_bridge.tests.verbose')
        with caplog.at_level(VERBOSE, logger='telemetry_bridge.tests.verbose'):
            log_verbose(logger, 'connected to device 42')
        assert 'connected to device 42' in caplog.text


class TestThrottledLogger:
    """节流日志"""

    def test_repeated_messages_suppressed(self, caplog):
        logger = logging.getLogger('telemetry_bridge.tests.throttled')
        throttled = ThrottledLogger(logger, min_interval=60.0)

        with caplog.at_level(logging.WARNING, logger='telemetry_bridge.tests.throttled'):
            for _ in range(5):
                throttled.warning('decode range error', key='decode_range')

        assert caplog.text.count('decode range error') == 1
        assert throttled.suppressed_count('decode_range') == 4

    def test_keys_are_independent(self, caplog):
        logger = logging.getLogger('telemetry_bridge.tests.throttled_keys')
        throttled = ThrottledLogger(logger, min_interval=60.0)

        with caplog.at_level(logging.WARNING, logger='telemetry_bridge.tests.throttled_keys'):
            throttled.warning('first', key='a')
            throttled.warning('second', key='b')

        assert 'first' in caplog.text
        assert 'second' in caplog.text

    def test_no_key_never_throttled(self, caplog):
        logger = logging.getLogger('telemetry_bridge.tests.throttled_nokey')
        throttled = ThrottledLogger(logger, min_interval=60.0)

        with caplog.at_level(logging.WARNING, logger='telemetry_bridge.tests.throttled_nokey'):
            throttled.warning('again')
            throttled.warning('again')

        assert caplog.text.count('again') == 2

    def test_zero_interval_logs_everything(self, caplog):
        logger = logging.getLogger('telemetry_bridge.tests.throttled_zero')
        throttled = ThrottledLogger(logger, min_interval=0.0)

        with caplog.at_level(logging.WARNING, logger='telemetry_bridge.tests.throttled_zero'):
            throttled.warning('tick', key='k')
            throttled.warning('tick', key='k')

        assert caplog.text.count('tick') == 2
