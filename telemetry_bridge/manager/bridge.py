"""
桥接器

组合根：连接遥测接收端、启动总线适配器，并组装节流控制器和健康调度器。

启动顺序:
    1. 遥测启用时连接接收端，连接结果通过回调 (error, client) 返回
       - error 非空: 致命错误 TransportConnectError
    2. 注册适配器错误通道
    3. adapter.start()，返回 False 或抛出异常: 致命错误 AdapterError
    4. adapter.connect() 获取设备标识
    5. 启动节流控制器
    6. 遥测启用时启动健康调度器

数据流:
    适配器帧批次 → ThrottleController → TelemetryPublisher → 接收端 (通道 0)
    HealthScheduler → adapter.query_health() → TelemetryPublisher → 接收端 (通道 100-104)

致命错误处理:
    记录日志、停止所有组件、记录退出码 1、唤醒 run_forever()。
    不重连，不重试。
"""
from typing import Any, Dict, Optional
import copy
import logging
import threading

from ..config.default_config import DEFAULT_CONFIG, validate_config
from ..config.loader import build_signal_specs
from ..config.validation import get_config_value
from ..core.data_types import AdapterErrorEvent
from ..core.exceptions import (
    AdapterError, ConfigurationError, FatalBridgeError, TransportConnectError,
)
from ..core.interfaces import IBusAdapter, ITelemetrySink, LifecycleState
from ..core.logging_config import log_verbose
from ..health.health_scheduler import HealthScheduler
from ..telemetry.publisher import TelemetryPublisher
from ..throttle.throttle_controller import ThrottleController, TimerFactory

logger = logging.getLogger(__name__)


class Bridge:
    """
    CAN 总线到遥测的桥接器

    使用示例:
        bridge = Bridge(adapter, sink, config)
        bridge.start()
        exit_code = bridge.run_forever()
    """

    def __init__(self, adapter: IBusAdapter, sink: Optional[ITelemetrySink] = None,
                 config: Optional[Dict[str, Any]] = None,
                 timer_factory: Optional[TimerFactory] = None,
                 validate: bool = True):
        """
        Args:
            adapter: 总线适配器
            sink: 遥测接收端，None 时等同于遥测禁用
            config: 配置字典，默认使用 DEFAULT_CONFIG 的副本
            timer_factory: 暂停定时器工厂，测试时注入
            validate: 是否验证配置

        Raises:
            ConfigValidationError: 配置验证失败
            ConfigurationError: 跟踪的信号未声明或声明无效
        """
        self.config = config if config is not None else copy.deepcopy(DEFAULT_CONFIG)
        if validate:
            validate_config(self.config, raise_on_error=True)

        self._adapter = adapter
        self._sink = sink
        self.telemetry_enabled = (
            bool(get_config_value(self.config, 'telemetry.enabled', True)) and sink is not None
        )

        signal_name = get_config_value(self.config, 'throttle.signal', 'speed')
        specs = build_signal_specs(self.config)
        if signal_name not in specs:
            raise ConfigurationError(f"tracked signal '{signal_name}' is not declared")
        self.signal_spec = specs[signal_name]

        self.shutdown_timeout_s = get_config_value(self.config, 'system.shutdown_timeout_s', 2.0)

        self.publisher = TelemetryPublisher(sink if self.telemetry_enabled else None, self.config)
        self.throttle = ThrottleController(
            adapter, self.signal_spec,
            publisher=self.publisher if self.telemetry_enabled else None,
            config=self.config,
            timer_factory=timer_factory,
            on_fatal=self._fatal,
        )
        self.health: Optional[HealthScheduler] = None
        if self.telemetry_enabled:
            self.health = HealthScheduler(adapter, self.publisher, self.config)

        self._lock = threading.RLock()
        self._state = LifecycleState.UNINITIALIZED
        self._done = threading.Event()
        self._exit_code: Optional[int] = None
        self._fatal_error: Optional[FatalBridgeError] = None
        self._components_stopped = False
        self.device_id: Any = None

    # ==================== 启动 ====================

    def start(self) -> None:
        """启动桥接器，幂等"""
        with self._lock:
            if self._state != LifecycleState.UNINITIALIZED:
                return
            self._state = LifecycleState.RUNNING

        logger.info(f"Starting bridge (telemetry {'enabled' if self.telemetry_enabled else 'disabled'})")
        if not self.telemetry_enabled:
            self._start_adapter()
            return

        try:
            self._sink.connect(self._on_transport_connected)
        except Exception as e:
            self._fatal(TransportConnectError(f"telemetry transport connect raised: {e}"))

    def _on_transport_connected(self, error: Optional[BaseException], client: Any = None) -> None:
        """接收端连接回调"""
        if error is not None:
            self._fatal(TransportConnectError(f"telemetry transport unreachable: {error}"))
            return
        log_verbose(logger, "telemetry transport connected")
        self._start_adapter()

    def _start_adapter(self) -> None:
        if self._done.is_set():
            return

        self._adapter.on_error(self._on_adapter_error)
        try:
            started = self._adapter.start()
        except Exception as e:
            self._fatal(AdapterError(f"adapter start raised: {e}"))
            return
        if not started:
            self._fatal(AdapterError("adapter failed to start"))
            return

        try:
            self.device_id = self._adapter.connect()
        except Exception as e:
            self._fatal(AdapterError(f"adapter connect raised: {e}"))
            return
        log_verbose(logger, f"connected to device {self.device_id}")

        with self._lock:
            if self._done.is_set():
                return
            try:
                self.throttle.start()
            except Exception as e:
                error = AdapterError(f"frame subscription failed: {e}")
            else:
                if self.health is not None:
                    self.health.start()
                logger.info("Bridge running")
                return
        self._fatal(error)

    # ==================== 错误处理 ====================

    def _on_adapter_error(self, event: AdapterErrorEvent) -> None:
        """适配器错误通道回调，任何事件都是致命的"""
        detail = f": {event.error}" if event.error is not None else ''
        self._fatal(AdapterError(f"adapter reported '{event.event}'{detail}", event=event.event))

    def _fatal(self, error: FatalBridgeError) -> None:
        """致命错误: 记录、停止所有组件、唤醒 run_forever()"""
        with self._lock:
            if self._exit_code is not None:
                return
            self._exit_code = getattr(error, 'exit_code', 1)
            self._fatal_error = error
            self._state = LifecycleState.ERROR
        logger.error(f"Fatal error: {error}")
        self._stop_components()
        self._done.set()

    # ==================== 停止 ====================

    def stop(self) -> None:
        """停止桥接器，幂等，不抛出异常"""
        with self._lock:
            if self._exit_code is None:
                self._exit_code = 0
                self._state = LifecycleState.SHUTDOWN
        self._stop_components()
        self._done.set()

    def _stop_components(self) -> None:
        """
        按依赖顺序停止组件

        1. 节流控制器 (取消定时器和订阅)
        2. 健康调度器
        3. 发布器 (等待已排队的发布)
        4. 适配器和接收端
        """
        with self._lock:
            if self._components_stopped:
                return
            self._components_stopped = True

        logger.info("Shutting down bridge...")
        try:
            self.throttle.stop()
        except Exception as e:
            logger.warning(f"Error stopping throttle controller: {e}")

        if self.health is not None:
            try:
                self.health.stop(timeout=self.shutdown_timeout_s)
            except Exception as e:
                logger.warning(f"Error stopping health scheduler: {e}")

        try:
            self.publisher.flush(timeout=self.shutdown_timeout_s)
            self.publisher.shutdown(wait=False)
        except Exception as e:
            logger.warning(f"Error shutting down publisher: {e}")

        try:
            self._adapter.shutdown()
        except Exception as e:
            logger.warning(f"Error shutting down adapter: {e}")

        if self.telemetry_enabled:
            try:
                self._sink.shutdown()
            except Exception as e:
                logger.warning(f"Error shutting down telemetry sink: {e}")

        logger.info("Bridge shutdown complete")

    def run_forever(self, timeout: Optional[float] = None) -> Optional[int]:
        """
        阻塞直到 stop() 或致命错误

        Args:
            timeout: 最长等待时间 (秒)，None 表示一直等待

        Returns:
            退出码 (0 或 1)；超时返回 None
        """
        if not self._done.wait(timeout):
            return None
        return self._exit_code

    # ==================== 状态查询 ====================

    @property
    def exit_code(self) -> Optional[int]:
        return self._exit_code

    @property
    def fatal_error(self) -> Optional[FatalBridgeError]:
        return self._fatal_error

    @property
    def state(self) -> LifecycleState:
        return self._state

    def get_status(self) -> Dict[str, Any]:
        """获取桥接器及各组件状态"""
        return {
            'state': self._state.name,
            'device_id': self.device_id,
            'telemetry_enabled': self.telemetry_enabled,
            'exit_code': self._exit_code,
            'throttle': self.throttle.get_status().to_dict(),
            'health': (self.health.get_health_status()
                       if self.health is not None else None),
            'publisher': self.publisher.get_stats(),
        }
