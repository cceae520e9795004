"""
遥测发布器

负责把解码值和健康字段交给遥测接收端。

职责说明：
- TelemetryPublisher: 统一的发布入口，处理开关、异步分发和失败记录
- 真实的传输（MQTT 等）由 ITelemetrySink 的实现负责

发射即忘语义：
- publish() 从不把接收端异常抛给调用方
- 不提供送达确认，不重试
- 启用 async_publish 时，发布在单个工作线程中按提交顺序执行，
  帧处理和健康轮询都不会因为接收端变慢而阻塞
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional
import logging
import threading

from ..core.interfaces import ITelemetrySink
from ..core.logging_config import ThrottledLogger

logger = logging.getLogger(__name__)


class TelemetryPublisher:
    """
    遥测发布器

    负责：
    - 在遥测禁用时丢弃所有发布（接收端从不被调用）
    - 可选地把发布分发到单个工作线程
    - 统计发布次数和失败次数
    - 维护最后一次发布记录

    使用示例:
        publisher = TelemetryPublisher(sink, config)
        publisher.publish(0, 42.5)
        publisher.publish(100, 12000, 'voltage', 'v')
        publisher.shutdown()
    """

    def __init__(self, sink: Optional[ITelemetrySink], config: Dict[str, Any]):
        """
        Args:
            sink: 遥测接收端，None 等同于禁用
            config: 完整配置字典
        """
        telemetry_config = config.get('telemetry', {})
        logging_config = config.get('logging', {})

        self._sink = sink
        self.enabled = bool(telemetry_config.get('enabled', True)) and sink is not None
        self._async = bool(telemetry_config.get('async_publish', True))
        self._queue_warn = telemetry_config.get('publish_queue_warn', 100)
        self._max_failures_log = telemetry_config.get('max_consecutive_failures_log', 5)

        self._lock = threading.Lock()
        self._publish_count = 0
        self._failure_count = 0
        self._consecutive_failures = 0
        self._pending = 0
        self._dropped_disabled = 0
        self._last_published: Optional[Dict[str, Any]] = None
        self._closed = False

        self._throttled = ThrottledLogger(logger, logging_config.get('throttle_interval_s', 5.0))

        self._executor: Optional[ThreadPoolExecutor] = None
        if self.enabled and self._async:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='telemetry-publish')

    def publish(self, channel_id: int, value: Any,
                type_hint: Optional[str] = None,
                unit_hint: Optional[str] = None) -> bool:
        """
        发布一个值

        Args:
            channel_id: 遥测通道 ID
            value: 值
            type_hint: 类型描述符
            unit_hint: 单位描述符

        Returns:
            True: 已交给接收端（或已排队）
            False: 遥测禁用或发布器已关闭，值被丢弃
        """
        if not self.enabled or self._closed:
            with self._lock:
                self._dropped_disabled += 1
            return False

        if self._executor is None:
            self._send(channel_id, value, type_hint, unit_hint)
            return True

        with self._lock:
            self._pending += 1
            pending = self._pending
        if pending > self._queue_warn:
            self._throttled.warning(
                f"Telemetry publish queue backing up: {pending} pending", key='queue')
        try:
            self._executor.submit(self._send, channel_id, value, type_hint, unit_hint)
        except RuntimeError:
            # shutdown() 与 publish() 并发时执行器已关闭
            with self._lock:
                self._pending -= 1
                self._dropped_disabled += 1
            return False
        return True

    def _send(self, channel_id: int, value: Any,
              type_hint: Optional[str], unit_hint: Optional[str]) -> None:
        """调用接收端，吞掉并记录异常"""
        try:
            logger.debug(f"publishing channel={channel_id} value={value}")
            self._sink.publish(channel_id, value, type_hint, unit_hint)
        except Exception as e:
            with self._lock:
                self._failure_count += 1
                self._consecutive_failures += 1
                fail_count = self._consecutive_failures

            if fail_count == 1:
                logger.warning(f"Telemetry publish failed on channel {channel_id}: {e}")
            elif fail_count <= self._max_failures_log:
                logger.debug(f"Telemetry publish failed (fail #{fail_count}): {e}")
            else:
                self._throttled.warning(
                    f"Telemetry publish still failing ({fail_count} consecutive): {e}",
                    key='publish_failed')
        else:
            with self._lock:
                self._publish_count += 1
                self._consecutive_failures = 0
                self._last_published = {
                    'channel': channel_id,
                    'value': value,
                    'type': type_hint,
                    'unit': unit_hint,
                }
        finally:
            if self._executor is not None:
                with self._lock:
                    self._pending -= 1

    def get_last_published(self) -> Optional[Dict[str, Any]]:
        """获取最后一次成功发布的记录"""
        with self._lock:
            return dict(self._last_published) if self._last_published else None

    def get_stats(self) -> Dict[str, Any]:
        """获取发布统计"""
        with self._lock:
            return {
                'enabled': self.enabled,
                'async': self._executor is not None,
                'published': self._publish_count,
                'failed': self._failure_count,
                'consecutive_failures': self._consecutive_failures,
                'pending': self._pending,
                'dropped': self._dropped_disabled,
            }

    def flush(self, timeout: Optional[float] = None) -> None:
        """
        等待已排队的发布完成

        同步模式下立即返回。
        """
        if self._executor is None:
            return
        marker = threading.Event()
        try:
            self._executor.submit(marker.set)
        except RuntimeError:
            return
        marker.wait(timeout)

    def shutdown(self, wait: bool = True) -> None:
        """
        关闭发布器

        之后的 publish() 调用返回 False。幂等。
        """
        if self._closed:
            return
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
        logger.debug("TelemetryPublisher shut down")
