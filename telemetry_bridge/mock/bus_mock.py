"""
总线适配器模拟

用于测试和演示模式，不需要真实的 CAN 设备。

提供:
- MockBusAdapter: 记录订阅/取消订阅，手动投递帧批次和错误事件
- ManualTimer / ManualTimerFactory: 替代 threading.Timer，由测试手动触发
"""
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable, Iterable, List, Optional, Sequence
import threading

from ..core.data_types import AdapterErrorEvent, Frame
from ..core.interfaces import IBusAdapter
from .test_data_generator import create_health_snapshot


class MockBusAdapter(IBusAdapter):
    """
    模拟总线适配器

    帧投递在调用 deliver() 的线程中同步执行。

    健康查询结果按 queue_health() 的顺序返回，队列为空时返回
    default_health。队列元素可以是:
    - HealthSnapshot 或字典: 作为结果
    - 异常实例: future.set_exception()
    - MockBusAdapter.HANG: 返回永不完成的 future，用于超时测试
    """

    HANG = object()

    def __init__(self, start_result: bool = True,
                 device_id: Any = 'mock-device-0001',
                 start_error: Optional[BaseException] = None,
                 connect_error: Optional[BaseException] = None,
                 subscribe_error: Optional[BaseException] = None,
                 unsubscribe_error: Optional[BaseException] = None,
                 health_results: Optional[Iterable[Any]] = None):
        self.start_result = start_result
        self.device_id = device_id
        self.start_error = start_error
        self.connect_error = connect_error
        self.subscribe_error = subscribe_error
        self.unsubscribe_error = unsubscribe_error
        self.default_health: Any = create_health_snapshot()

        self._lock = threading.Lock()
        self._frame_callbacks: List[Callable[[Sequence[Frame]], None]] = []
        self._error_callbacks: List[Callable[[AdapterErrorEvent], None]] = []
        self._health_queue = deque(health_results or [])

        self.started = False
        self.connected = False
        self.is_shutdown = False
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self.health_query_count = 0
        self.delivered_batches = 0

    # ==================== IBusAdapter ====================

    def start(self) -> bool:
        if self.start_error is not None:
            raise self.start_error
        self.started = True
        return self.start_result

    def connect(self) -> Any:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        return self.device_id

    def subscribe_frames(self, callback: Callable[[Sequence[Frame]], None]) -> Callable[[], None]:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        with self._lock:
            self._frame_callbacks.append(callback)
            self.subscribe_calls += 1

        def unsubscribe() -> None:
            if self.unsubscribe_error is not None:
                raise self.unsubscribe_error
            with self._lock:
                if callback in self._frame_callbacks:
                    self._frame_callbacks.remove(callback)
                self.unsubscribe_calls += 1

        return unsubscribe

    def on_error(self, callback: Callable[[AdapterErrorEvent], None]) -> None:
        with self._lock:
            self._error_callbacks.append(callback)

    def query_health(self) -> Future:
        future: Future = Future()
        with self._lock:
            self.health_query_count += 1
            item = self._health_queue.popleft() if self._health_queue else self.default_health

        if item is self.HANG:
            return future
        if isinstance(item, BaseException):
            future.set_exception(item)
        else:
            future.set_result(item)
        return future

    def shutdown(self) -> None:
        self.is_shutdown = True

    # ==================== 测试控制 ====================

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._frame_callbacks)

    def deliver(self, frames: Sequence[Frame]) -> int:
        """
        向当前订阅者投递一批帧

        Returns:
            收到该批次的订阅者数量
        """
        with self._lock:
            callbacks = list(self._frame_callbacks)
        for callback in callbacks:
            callback(list(frames))
        self.delivered_batches += 1
        return len(callbacks)

    def deliver_direct(self, frames: Sequence[Frame],
                       callback: Callable[[Sequence[Frame]], None]) -> None:
        """绕过订阅直接调用回调，模拟与取消订阅竞争的投递"""
        callback(list(frames))

    def emit_error(self, event: str, error: Any = None) -> None:
        """在错误通道上发出事件"""
        with self._lock:
            callbacks = list(self._error_callbacks)
        for callback in callbacks:
            callback(AdapterErrorEvent(event, error))

    def queue_health(self, *results: Any) -> None:
        """追加健康查询结果"""
        with self._lock:
            self._health_queue.extend(results)


class ManualTimer:
    """
    手动定时器

    与 threading.Timer 接口一致 (start/cancel/daemon)，但只在调用 fire() 时执行。
    """

    def __init__(self, interval: float, function: Callable[..., None],
                 args: Optional[Sequence[Any]] = None, kwargs: Optional[dict] = None):
        self.interval = interval
        self.function = function
        self.args = list(args or [])
        self.kwargs = dict(kwargs or {})
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def is_alive(self) -> bool:
        return self.started and not self.cancelled and not self.fired

    def fire(self) -> bool:
        """
        触发定时器

        Returns:
            True: 回调已执行
            False: 定时器未启动、已取消或已触发
        """
        if not self.is_alive():
            return False
        self.fired = True
        self.function(*self.args, **self.kwargs)
        return True


class ManualTimerFactory:
    """创建并记录 ManualTimer，作为 timer_factory 注入"""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, interval: float, function: Callable[..., None]) -> ManualTimer:
        timer = ManualTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> Optional[ManualTimer]:
        return self.timers[-1] if self.timers else None

    @property
    def pending(self) -> List[ManualTimer]:
        return [timer for timer in self.timers if timer.is_alive()]

    def fire_all(self) -> int:
        """触发所有待触发的定时器，返回触发数量"""
        return sum(1 for timer in self.pending if timer.fire())
