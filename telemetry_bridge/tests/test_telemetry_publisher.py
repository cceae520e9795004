"""TelemetryPublisher 测试"""
import copy
import threading
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from telemetry_bridge.config.default_config import DEFAULT_CONFIG
from telemetry_bridge.mock.sink_mock import LoggingSink, PublishRecord, RecordingSink
from telemetry_bridge.telemetry.publisher import TelemetryPublisher


def make_config(async_publish=False, enabled=True):
    config = copy.deepcopy(DEFAULT_CONFIG)
    config['telemetry']['async_publish'] = async_publish
    config['telemetry']['enabled'] = enabled
    return config


def test_publisher_sync_publish():
    """同步模式直接调用接收端"""
    sink = RecordingSink()
    publisher = TelemetryPublisher(sink, make_config())

    assert publisher.publish(0, 6.2) is True
    assert publisher.publish(100, 12000, 'voltage', 'v') is True

    assert sink.records == [
        PublishRecord(0, 6.2, None, None),
        PublishRecord(100, 12000, 'voltage', 'v'),
    ]
    assert publisher.get_last_published() == {
        'channel': 100, 'value': 12000, 'type': 'voltage', 'unit': 'v'}
    assert publisher.get_stats()['published'] == 2


def test_publisher_disabled_never_calls_sink():
    """禁用时接收端从不被调用"""
    sink = RecordingSink()
    publisher = TelemetryPublisher(sink, make_config(enabled=False))

    assert publisher.enabled is False
    assert publisher.publish(0, 1.0) is False
    assert sink.records == []
    assert publisher.get_stats()['dropped'] == 1


def test_publisher_without_sink_is_disabled():
    publisher = TelemetryPublisher(None, make_config())
    assert publisher.enabled is False
    assert publisher.publish(0, 1.0) is False


def test_publisher_swallows_sink_errors():
    """接收端异常不传播给调用方"""
    sink = RecordingSink(fail_publish=True)
    publisher = TelemetryPublisher(sink, make_config())

    for _ in range(10):
        assert publisher.publish(0, 1.0) is True

    stats = publisher.get_stats()
    assert stats['failed'] == 10
    assert stats['consecutive_failures'] == 10
    assert stats['published'] == 0
    assert publisher.get_last_published() is None


def test_publisher_failure_counter_resets_on_success():
    sink = RecordingSink(fail_publish=True)
    publisher = TelemetryPublisher(sink, make_config())
    publisher.publish(0, 1.0)
    sink.fail_publish = False
    publisher.publish(0, 2.0)

    stats = publisher.get_stats()
    assert stats['failed'] == 1
    assert stats['consecutive_failures'] == 0


def test_publisher_async_preserves_order():
    """异步模式按提交顺序发布"""
    sink = RecordingSink()
    publisher = TelemetryPublisher(sink, make_config(async_publish=True))
    try:
        for value in range(50):
            publisher.publish(0, value)
        publisher.flush(timeout=2.0)

        assert sink.values_for(0) == list(range(50))
        assert publisher.get_stats()['pending'] == 0
    finally:
        publisher.shutdown()


def test_publisher_async_does_not_block_caller():
    """接收端阻塞时 publish() 立即返回"""
    release = threading.Event()

    class BlockingSink(RecordingSink):
        def publish(self, channel_id, value, type_hint=None, unit_hint=None):
            release.wait(2.0)
            super().publish(channel_id, value, type_hint, unit_hint)

    sink = BlockingSink()
    publisher = TelemetryPublisher(sink, make_config(async_publish=True))
    try:
        assert publisher.publish(0, 1.0) is True
        assert publisher.publish(0, 2.0) is True
        assert sink.records == []

        release.set()
        publisher.flush(timeout=2.0)
        assert sink.values_for(0) == [1.0, 2.0]
    finally:
        release.set()
        publisher.shutdown()


def test_publisher_rejects_after_shutdown():
    sink = RecordingSink()
    publisher = TelemetryPublisher(sink, make_config(async_publish=True))
    publisher.shutdown()
    publisher.shutdown()

    assert publisher.publish(0, 1.0) is False
    assert sink.records == []


def test_logging_sink_logs(caplog):
    """LoggingSink 把发布写入日志"""
    sink = LoggingSink()
    connected = []
    sink.connect(lambda error, client: connected.append((error, client)))
    assert connected == [(None, sink)]

    with caplog.at_level('INFO', logger='telemetry_bridge.mock.sink_mock'):
        sink.publish(101, 480, 'current', 'ma')

    assert sink.publish_count == 1
    assert 'channel=101' in caplog.text
    assert '[current/ma]' in caplog.text
