"""
健康调度器测试

测试覆盖:
1. 单次轮询发布五个字段 (通道、类型、单位)
2. 查询失败、超时和无效数据
3. 周期调度: 失败不影响后续触发
4. 停止立即唤醒线程
5. 查询超过周期时跳过触发
"""
import copy
import time
from concurrent.futures import Future
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from telemetry_bridge.config.default_config import DEFAULT_CONFIG
from telemetry_bridge.core.exceptions import HealthQueryError
from telemetry_bridge.health.health_scheduler import HealthScheduler
from telemetry_bridge.mock.bus_mock import MockBusAdapter
from telemetry_bridge.mock.sink_mock import PublishRecord, RecordingSink
from telemetry_bridge.mock.test_data_generator import create_health_snapshot
from telemetry_bridge.telemetry.publisher import TelemetryPublisher


def make_scheduler(interval_s=300.0, query_timeout_s=1.0, adapter=None, config=None):
    config = config or copy.deepcopy(DEFAULT_CONFIG)
    config['health']['interval_s'] = interval_s
    config['health']['query_timeout_s'] = query_timeout_s
    config['telemetry']['async_publish'] = False
    adapter = adapter or MockBusAdapter()
    sink = RecordingSink()
    scheduler = HealthScheduler(adapter, TelemetryPublisher(sink, config), config)
    return scheduler, adapter, sink


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True


class TestPollOnce:
    """单次轮询"""

    def test_publishes_five_fields(self):
        """五个字段分别发布到 100-104，带类型和单位"""
        scheduler, adapter, sink = make_scheduler()
        adapter.queue_health(create_health_snapshot(
            voltage_mv=12150, current_ma=480, gas_interceptor_detected=False,
            start_signal_detected=True, controls_allowed=False))

        snapshot = scheduler.poll_once()

        assert snapshot.voltage_mv == 12150
        assert sink.records == [
            PublishRecord(100, 12150, 'voltage', 'v'),
            PublishRecord(101, 480, 'current', 'ma'),
            PublishRecord(102, False, 'digital_sensor', 'd'),
            PublishRecord(103, True, 'digital_sensor', 'd'),
            PublishRecord(104, False, 'digital_sensor', 'd'),
        ]

    def test_accepts_raw_adapter_dict(self):
        """适配器原始字段名的字典也能解析"""
        scheduler, adapter, sink = make_scheduler()
        adapter.queue_health(create_health_snapshot(
            voltage_mv=11800, controls_allowed=True, as_raw_dict=True))

        snapshot = scheduler.poll_once()

        assert snapshot.voltage_mv == 11800
        assert snapshot.controls_allowed is True
        assert sink.values_for(104) == [True]

    def test_custom_channels(self):
        config = copy.deepcopy(DEFAULT_CONFIG)
        config['channels']['voltage'] = 200
        scheduler, _, sink = make_scheduler(config=config)
        scheduler.poll_once()
        assert sink.records[0].channel == 200
        assert sink.records[1].channel == 101

    def test_updates_status(self):
        scheduler, _, _ = make_scheduler()
        scheduler.poll_once()
        status = scheduler.get_status()
        assert status.poll_count == 1
        assert status.failure_count == 0
        assert status.last_snapshot is not None
        assert status.last_error is None


class TestPollFailures:
    """查询失败"""

    def test_query_exception(self):
        """future 异常 → HealthQueryError，不发布"""
        scheduler, adapter, sink = make_scheduler()
        adapter.queue_health(RuntimeError("usb stall"))

        with pytest.raises(HealthQueryError):
            scheduler.poll_once()

        assert sink.records == []
        status = scheduler.get_status()
        assert status.failure_count == 1
        assert 'usb stall' in status.last_error

    def test_query_timeout(self):
        """超时 → HealthQueryError"""
        scheduler, adapter, sink = make_scheduler(query_timeout_s=0.05)
        adapter.queue_health(MockBusAdapter.HANG)

        with pytest.raises(HealthQueryError) as exc_info:
            scheduler.poll_once()

        assert 'within' in str(exc_info.value)
        assert sink.records == []

    def test_invalid_payload(self):
        scheduler, adapter, sink = make_scheduler()
        adapter.queue_health({'voltage': 12000})

        with pytest.raises(HealthQueryError):
            scheduler.poll_once()
        assert sink.records == []

    def test_query_health_raises_directly(self):
        adapter = MockBusAdapter()

        def broken_query():
            raise OSError("device closed")

        adapter.query_health = broken_query
        scheduler, _, _ = make_scheduler(adapter=adapter)

        with pytest.raises(HealthQueryError):
            scheduler.poll_once()

    def test_success_after_failure_clears_error(self):
        scheduler, adapter, _ = make_scheduler()
        adapter.queue_health(RuntimeError("once"))
        with pytest.raises(HealthQueryError):
            scheduler.poll_once()

        scheduler.poll_once()
        status = scheduler.get_status()
        assert status.last_error is None
        assert status.poll_count == 2
        assert status.failure_count == 1


class TestScheduling:
    """周期调度"""

    def test_polls_every_interval(self):
        scheduler, adapter, sink = make_scheduler(interval_s=0.05)
        scheduler.start()
        try:
            assert wait_until(lambda: adapter.health_query_count >= 3)
        finally:
            scheduler.stop()

        assert len(sink.records) >= 15

    def test_failure_does_not_cancel_later_ticks(self):
        """一次失败后调度继续"""
        scheduler, adapter, sink = make_scheduler(interval_s=0.05)
        adapter.queue_health(RuntimeError("transient"))
        scheduler.start()
        try:
            assert wait_until(lambda: scheduler.get_status().poll_count >= 3)
        finally:
            scheduler.stop()

        status = scheduler.get_status()
        assert status.failure_count == 1
        assert len(sink.records) >= 10

    def test_first_poll_after_one_interval(self):
        scheduler, adapter, _ = make_scheduler(interval_s=60.0)
        scheduler.start()
        try:
            time.sleep(0.05)
            assert adapter.health_query_count == 0
        finally:
            scheduler.stop()

    def test_stop_wakes_immediately(self):
        scheduler, _, _ = make_scheduler(interval_s=60.0)
        scheduler.start()
        assert scheduler.running

        started = time.monotonic()
        scheduler.stop()

        assert time.monotonic() - started < 1.0
        assert not scheduler.running

    def test_start_and_stop_idempotent(self):
        scheduler, _, _ = make_scheduler(interval_s=60.0)
        scheduler.start()
        thread = scheduler._thread
        scheduler.start()
        assert scheduler._thread is thread

        scheduler.stop()
        scheduler.stop()
        assert not scheduler.running

    def test_slow_poll_skips_missed_ticks(self):
        """查询耗时超过周期时跳过错过的触发，不集中补发"""
        adapter = MockBusAdapter()

        def slow_query():
            time.sleep(0.12)
            future = Future()
            future.set_result(create_health_snapshot())
            return future

        adapter.query_health = slow_query
        scheduler, _, _ = make_scheduler(interval_s=0.05, adapter=adapter)
        scheduler.start()
        try:
            assert wait_until(lambda: scheduler.get_status().poll_count >= 2)
        finally:
            scheduler.stop()

        assert scheduler.skipped_ticks > 0

    def test_health_status(self):
        scheduler, _, _ = make_scheduler(interval_s=60.0)
        assert scheduler.get_health_status()['state'] == 'stopped'
        scheduler.start()
        try:
            assert scheduler.get_health_status()['healthy'] is True
        finally:
            scheduler.stop()
