"""
节流控制器

帧流的两状态机:

    LISTENING ──(处理 pause_threshold 批帧)──> PAUSED
        ^                                         │
        └──────────(pause_duration_s 到期)────────┘

LISTENING:
    - 已订阅适配器帧事件
    - 每批帧解码一次，解码出的值覆盖 last_value
    - 每批帧 pending_count 加 1，无论是否找到匹配帧

进入 PAUSED:
    - 取消订阅，暂停期间适配器不投递帧，帧不被缓冲
    - 若本窗口内解码出了值，发布一次 last_value
    - 启动暂停定时器

离开 PAUSED:
    - pending_count 清零，重新订阅
    - 不发布

线程安全性说明:
    - 帧回调在适配器线程中执行，暂停到期回调在定时器线程中执行
    - 所有状态、计数器和 last_value 的修改都在同一把 RLock 下进行
    - 发布和取消订阅在锁外进行
"""
from typing import Any, Callable, Dict, Optional, Sequence
import logging
import threading

from ..core.constants import CHANNEL_SPEED
from ..core.data_types import Frame, SignalSpec, ThrottleStatus
from ..core.enums import ThrottleState
from ..core.exceptions import AdapterError, DecodeRangeError, FatalBridgeError
from ..core.interfaces import (
    FrameSubscription, IBusAdapter, ILifecycleComponent, LifecycleState,
)
from ..core.logging_config import ThrottledLogger, log_verbose
from ..decoder.frame_decoder import decode
from ..telemetry.publisher import TelemetryPublisher

logger = logging.getLogger(__name__)

# timer_factory(interval, function) -> 具有 start()/cancel() 的对象
TimerFactory = Callable[[float, Callable[[], None]], Any]


class ThrottleController(ILifecycleComponent):
    """
    节流控制器

    唯一负责订阅和取消订阅帧事件的组件。

    使用示例:
        controller = ThrottleController(adapter, spec, publisher, config)
        controller.start()
        ...
        controller.stop()
    """

    def __init__(self, adapter: IBusAdapter, spec: SignalSpec,
                 publisher: Optional[TelemetryPublisher] = None,
                 config: Optional[Dict[str, Any]] = None,
                 timer_factory: Optional[TimerFactory] = None,
                 on_fatal: Optional[Callable[[FatalBridgeError], None]] = None):
        """
        Args:
            adapter: 总线适配器
            spec: 跟踪的信号声明
            publisher: 遥测发布器，None 表示遥测禁用，从不发布
            config: 完整配置字典
            timer_factory: 暂停定时器工厂，默认 threading.Timer
            on_fatal: 取消订阅或重新订阅失败时的致命错误回调
        """
        config = config or {}
        throttle_config = config.get('throttle', {})
        channels_config = config.get('channels', {})
        logging_config = config.get('logging', {})

        self._adapter = adapter
        self._spec = spec
        self._publisher = publisher
        self._timer_factory = timer_factory or threading.Timer
        self._on_fatal = on_fatal

        self.pause_threshold = int(throttle_config.get('pause_threshold', 1))
        self.pause_duration_s = float(throttle_config.get('pause_duration_s', 1.0))
        self.channel = channels_config.get('speed', CHANNEL_SPEED)

        self._lock = threading.RLock()
        self._lifecycle = LifecycleState.UNINITIALIZED
        self._state = ThrottleState.LISTENING
        self._pending_count = 0
        self._last_value: Optional[float] = None
        self._decoded_in_window = False
        self._subscription: Optional[FrameSubscription] = None
        self._timer = None

        # 统计
        self._cycles_completed = 0
        self._publish_count = 0
        self._decode_errors = 0
        self._dropped_batches = 0

        self._throttled = ThrottledLogger(logger, logging_config.get('throttle_interval_s', 5.0))

    # ==================== 生命周期 ====================

    def start(self) -> None:
        """订阅帧事件并进入 LISTENING，幂等"""
        with self._lock:
            if self._lifecycle == LifecycleState.RUNNING:
                return
            self._lifecycle = LifecycleState.RUNNING
            self._pending_count = 0
            self._decoded_in_window = False
            self._subscription = FrameSubscription(
                self._adapter.subscribe_frames(self.handle_frames))
            self._state = ThrottleState.LISTENING
        logger.info(
            f"ThrottleController started: threshold={self.pause_threshold} batches, "
            f"pause={self.pause_duration_s}s")

    def stop(self) -> None:
        """取消暂停定时器和订阅，幂等，不抛出异常"""
        with self._lock:
            if self._lifecycle != LifecycleState.RUNNING:
                return
            self._lifecycle = LifecycleState.SHUTDOWN
            timer, self._timer = self._timer, None
            subscription, self._subscription = self._subscription, None

        if timer is not None:
            timer.cancel()
        if subscription is not None:
            try:
                subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Unsubscribe failed during stop: {e}")
        logger.info(
            f"ThrottleController stopped after {self._cycles_completed} cycles, "
            f"{self._publish_count} publishes")

    # ==================== 帧处理 ====================

    def handle_frames(self, frames: Sequence[Frame]) -> None:
        """
        帧批次回调

        只在 LISTENING 状态下处理。暂停期间到达的批次
        (与取消订阅竞争的投递) 被丢弃并计数。
        """
        with self._lock:
            if self._lifecycle != LifecycleState.RUNNING or self._state != ThrottleState.LISTENING:
                self._dropped_batches += 1
                return

            try:
                value = decode(frames, self._spec)
            except DecodeRangeError as e:
                self._decode_errors += 1
                self._throttled.warning(
                    f"Dropping frame 0x{e.frame_address:X}: {e} "
                    f"(total decode errors: {self._decode_errors})",
                    key='decode_range')
                return

            if value is not None:
                self._last_value = value
                self._decoded_in_window = True
            self._pending_count += 1
            logger.debug(
                f"batch of {len(frames)} frames, value={value}, "
                f"pending={self._pending_count}/{self.pause_threshold}")

            if self._pending_count < self.pause_threshold:
                return

            subscription, timer, to_publish = self._enter_paused()

        if subscription is not None:
            try:
                subscription.unsubscribe()
            except Exception as e:
                self._on_unsubscribe_failed(timer, e)
                return
        # 取消订阅完成后才启动定时器
        timer.start()
        if to_publish is not None:
            self._publish(to_publish)

    def _enter_paused(self):
        """LISTENING → PAUSED，调用方持有锁"""
        self._state = ThrottleState.PAUSED
        self._cycles_completed += 1
        subscription, self._subscription = self._subscription, None

        timer = self._timer_factory(self.pause_duration_s, self._on_pause_expired)
        timer.daemon = True
        self._timer = timer

        # 只发布本窗口内解码出的值
        to_publish = None
        if self._publisher is not None and self._decoded_in_window:
            to_publish = self._last_value
        self._decoded_in_window = False
        if to_publish is not None:
            self._publish_count += 1
        logger.debug(f"paused for {self.pause_duration_s}s (cycle {self._cycles_completed})")
        return subscription, timer, to_publish

    def _on_unsubscribe_failed(self, timer, error: Exception) -> None:
        """
        进入 PAUSED 时取消订阅失败

        旧订阅可能仍然有效，不启动暂停定时器，作为致命错误上报。
        """
        with self._lock:
            if self._timer is timer:
                self._timer = None
        logger.error(f"Unsubscribe on pause failed: {error}")
        if self._on_fatal is not None:
            self._on_fatal(AdapterError(f"unsubscribe failed: {error}"))

    def _publish(self, value: float) -> None:
        self._publisher.publish(self.channel, value)

    def _on_pause_expired(self) -> None:
        """暂停定时器到期: PAUSED → LISTENING"""
        with self._lock:
            if self._lifecycle != LifecycleState.RUNNING or self._state != ThrottleState.PAUSED:
                return
            self._timer = None
            self._pending_count = 0
            self._decoded_in_window = False
            try:
                self._subscription = FrameSubscription(
                    self._adapter.subscribe_frames(self.handle_frames))
            except Exception as e:
                logger.error(f"Re-subscribe after pause failed: {e}")
                error = AdapterError(f"re-subscribe failed: {e}")
            else:
                self._state = ThrottleState.LISTENING
                log_verbose(logger, "resumed listening")
                return

        if self._on_fatal is not None:
            self._on_fatal(error)

    # ==================== 状态查询 ====================

    @property
    def state(self) -> ThrottleState:
        return self._state

    @property
    def pending_count(self) -> int:
        return self._pending_count

    @property
    def last_value(self) -> Optional[float]:
        return self._last_value

    @property
    def subscribed(self) -> bool:
        subscription = self._subscription
        return subscription is not None and subscription.active

    @property
    def lifecycle_state(self) -> LifecycleState:
        return self._lifecycle

    def get_status(self) -> ThrottleStatus:
        """获取状态快照"""
        with self._lock:
            return ThrottleStatus(
                state=self._state,
                pending_count=self._pending_count,
                pause_threshold=self.pause_threshold,
                last_value=self._last_value,
                subscribed=self.subscribed,
                cycles_completed=self._cycles_completed,
                publish_count=self._publish_count,
                decode_errors=self._decode_errors,
                dropped_batches=self._dropped_batches,
            )

    def get_health_status(self) -> Optional[Dict[str, Any]]:
        running = self._lifecycle == LifecycleState.RUNNING
        return {
            'healthy': running,
            'state': self._state.name,
            'message': (f"{self._cycles_completed} cycles, {self._decode_errors} decode errors"
                        if running else self._lifecycle.name.lower()),
        }
