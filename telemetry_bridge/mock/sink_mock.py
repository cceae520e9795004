"""
遥测接收端模拟

- RecordingSink: 记录每次发布，供测试断言
- LoggingSink: 把发布写入日志，未接入真实传输时使用
"""
from typing import Any, List, NamedTuple, Optional
import logging
import threading

from ..core.interfaces import ConnectCallback, ITelemetrySink

logger = logging.getLogger(__name__)


class PublishRecord(NamedTuple):
    channel: int
    value: Any
    type_hint: Optional[str]
    unit_hint: Optional[str]


class RecordingSink(ITelemetrySink):
    """
    记录型接收端

    Args:
        connect_error: 非空时 connect 回调报告该错误
        fail_publish: 为 True 时 publish 抛出 RuntimeError
        defer_connect: 为 True 时 connect 不立即回调，需调用 complete_connect()
    """

    def __init__(self, connect_error: Optional[BaseException] = None,
                 fail_publish: bool = False, defer_connect: bool = False):
        self.connect_error = connect_error
        self.fail_publish = fail_publish
        self.defer_connect = defer_connect

        self._lock = threading.Lock()
        self._records: List[PublishRecord] = []
        self._pending_callback: Optional[ConnectCallback] = None
        self.connect_calls = 0
        self.is_shutdown = False

    def connect(self, callback: ConnectCallback) -> None:
        self.connect_calls += 1
        if self.defer_connect:
            self._pending_callback = callback
            return
        self._complete(callback)

    def complete_connect(self) -> None:
        """完成延迟的连接"""
        callback, self._pending_callback = self._pending_callback, None
        if callback is not None:
            self._complete(callback)

    def _complete(self, callback: ConnectCallback) -> None:
        if self.connect_error is not None:
            callback(self.connect_error, None)
        else:
            callback(None, self)

    def publish(self, channel_id: int, value: Any,
                type_hint: Optional[str] = None,
                unit_hint: Optional[str] = None) -> None:
        if self.fail_publish:
            raise RuntimeError("sink unavailable")
        with self._lock:
            self._records.append(PublishRecord(channel_id, value, type_hint, unit_hint))

    def shutdown(self) -> None:
        self.is_shutdown = True

    @property
    def records(self) -> List[PublishRecord]:
        with self._lock:
            return list(self._records)

    def values_for(self, channel_id: int) -> List[Any]:
        """某通道上发布过的所有值"""
        return [record.value for record in self.records if record.channel == channel_id]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


class LoggingSink(ITelemetrySink):
    """日志型接收端，连接总是成功"""

    def __init__(self, log_level: int = logging.INFO):
        self._log_level = log_level
        self.publish_count = 0

    def connect(self, callback: ConnectCallback) -> None:
        logger.info("LoggingSink connected")
        callback(None, self)

    def publish(self, channel_id: int, value: Any,
                type_hint: Optional[str] = None,
                unit_hint: Optional[str] = None) -> None:
        self.publish_count += 1
        descriptor = f" [{type_hint}/{unit_hint}]" if type_hint else ''
        logger.log(self._log_level, f"telemetry channel={channel_id} value={value}{descriptor}")
