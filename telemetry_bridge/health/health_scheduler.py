"""
健康调度器

在独立的守护线程中周期性查询适配器健康状态，并把五个字段
分别发布到各自的遥测通道。

调度说明:
    - 固定速率: 第 n 次触发时间为 start + n * interval_s (单调时钟)
    - 查询或发布耗时不会推迟之后的触发
    - 完全错过的触发被跳过，不会集中补发
    - 首次查询在启动一个周期之后

与节流控制器相互独立，无论帧流处于监听还是暂停状态都照常轮询。
"""
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, Optional
import logging
import threading
import time

from ..core.constants import HEALTH_FIELDS
from ..core.data_types import HealthSchedulerStatus, HealthSnapshot
from ..core.exceptions import HealthQueryError
from ..core.interfaces import IBusAdapter, ILifecycleComponent
from ..config.system_config import CHANNELS_CONFIG
from ..telemetry.publisher import TelemetryPublisher

logger = logging.getLogger(__name__)


class HealthScheduler(ILifecycleComponent):
    """
    健康调度器

    使用示例:
        scheduler = HealthScheduler(adapter, publisher, config)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(self, adapter: IBusAdapter, publisher: TelemetryPublisher,
                 config: Optional[Dict[str, Any]] = None,
                 clock: Callable[[], float] = time.monotonic):
        config = config or {}
        health_config = config.get('health', {})
        channels_config = config.get('channels', {})

        self._adapter = adapter
        self._publisher = publisher
        self._clock = clock

        self.interval_s = float(health_config.get('interval_s', 300.0))
        self.query_timeout_s = float(health_config.get('query_timeout_s', 10.0))
        self._channels = {
            key: channels_config.get(key, default) for key, default in CHANNELS_CONFIG.items()
        }

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._poll_count = 0
        self._failure_count = 0
        self._skipped_ticks = 0
        self._last_snapshot: Optional[HealthSnapshot] = None
        self._last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive() and not self._stop_event.is_set()

    @property
    def skipped_ticks(self) -> int:
        """因查询超过周期而跳过的触发次数"""
        return self._skipped_ticks

    def start(self) -> None:
        """启动调度线程，幂等"""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name='health-scheduler', daemon=True)
            self._thread.start()
        logger.info(f"HealthScheduler started: interval={self.interval_s}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        停止调度线程，幂等

        立即唤醒等待中的线程。从调度线程自身调用时不等待。
        """
        with self._lock:
            thread, self._thread = self._thread, None
            self._stop_event.set()
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout)
        logger.info(
            f"HealthScheduler stopped after {self._poll_count} polls "
            f"({self._failure_count} failed)")

    def _run(self) -> None:
        next_tick = self._clock() + self.interval_s
        while not self._stop_event.wait(max(0.0, next_tick - self._clock())):
            self._tick()
            next_tick += self.interval_s
            now = self._clock()
            if next_tick <= now:
                missed = int((now - next_tick) // self.interval_s) + 1
                next_tick += missed * self.interval_s
                self._skipped_ticks += missed
                logger.warning(f"Health poll overran its interval, skipping {missed} tick(s)")

    def _tick(self) -> None:
        try:
            self.poll_once()
        except HealthQueryError as e:
            logger.warning(f"Health query failed: {e}")
        except Exception as e:
            # 保持调度线程存活，下一次触发照常进行
            logger.exception(f"Unexpected error in health poll: {e}")

    def poll_once(self) -> HealthSnapshot:
        """
        执行一次健康查询并发布

        Returns:
            本次查询得到的快照

        Raises:
            HealthQueryError: 查询异常、超时或返回数据无效
        """
        with self._lock:
            self._poll_count += 1

        try:
            snapshot = self._query()
        except HealthQueryError as e:
            with self._lock:
                self._failure_count += 1
                self._last_error = str(e)
            raise

        with self._lock:
            self._last_snapshot = snapshot
            self._last_error = None

        for field_name, channel_key, type_hint, unit_hint in HEALTH_FIELDS:
            self._publisher.publish(
                self._channels[channel_key], getattr(snapshot, field_name),
                type_hint, unit_hint)
        logger.debug(f"health published: {snapshot.to_dict()}")
        return snapshot

    def _query(self) -> HealthSnapshot:
        try:
            future = self._adapter.query_health()
        except Exception as e:
            raise HealthQueryError(f"query_health raised: {e}") from e

        try:
            result = future.result(timeout=self.query_timeout_s)
        except FutureTimeoutError as e:
            future.cancel()
            raise HealthQueryError(
                f"no health response within {self.query_timeout_s}s") from e
        except Exception as e:
            raise HealthQueryError(f"health query failed: {e}") from e

        if isinstance(result, HealthSnapshot):
            return result
        try:
            return HealthSnapshot.from_dict(result)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise HealthQueryError(f"invalid health payload {result!r}: {e}") from e

    def get_status(self) -> HealthSchedulerStatus:
        """获取状态快照"""
        with self._lock:
            return HealthSchedulerStatus(
                running=self.running,
                interval_s=self.interval_s,
                poll_count=self._poll_count,
                failure_count=self._failure_count,
                last_snapshot=self._last_snapshot,
                last_error=self._last_error,
            )

    def get_health_status(self) -> Optional[Dict[str, Any]]:
        status = self.get_status()
        return {
            'healthy': status.running and status.last_error is None,
            'state': 'running' if status.running else 'stopped',
            'message': status.last_error or f"{status.poll_count} polls",
        }
