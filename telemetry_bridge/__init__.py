"""
遥测桥接器 (Telemetry Bridge)

版本: v1.0.0

把车辆 CAN 总线上的信号节流后转发到远程遥测通道。

特性:
- 帧解码: 按 SignalSpec 从帧载荷读取大端无符号整数并缩放
- 节流: 监听/暂停两状态机，暂停期间取消订阅，每个周期最多发布一次
- 健康轮询: 固定速率查询设备电压、电流和三个数字状态
- 快速失败: 传输不可达或适配器故障时停止并以退出码 1 结束
- 可插拔: 适配器和遥测接收端通过抽象接口注入

使用示例:
    from telemetry_bridge import Bridge, load_config

    config = load_config('bridge.yaml')
    bridge = Bridge(adapter, sink, config)
    bridge.start()
    exit_code = bridge.run_forever()
"""

__version__ = "1.0.0"
__author__ = "Telemetry Bridge Team"

from .manager.bridge import Bridge
from .config import DEFAULT_CONFIG, load_config, build_signal_specs, get_config_value
from .core.enums import ThrottleState
from .core.data_types import (
    SignalSpec, Frame, HealthSnapshot, AdapterErrorEvent,
    ThrottleStatus, HealthSchedulerStatus,
)
from .core.interfaces import IBusAdapter, ITelemetrySink
from .core.exceptions import (
    BridgeError, ConfigurationError, ConfigValidationError,
    DecodeRangeError, OutOfRangeError, HealthQueryError,
    FatalBridgeError, TransportConnectError, AdapterError,
)
from .decoder.frame_decoder import decode
from .throttle.throttle_controller import ThrottleController
from .health.health_scheduler import HealthScheduler
from .telemetry.publisher import TelemetryPublisher

__all__ = [
    # 版本
    '__version__',
    # 组件
    'Bridge',
    'ThrottleController',
    'HealthScheduler',
    'TelemetryPublisher',
    'decode',
    # 配置
    'DEFAULT_CONFIG',
    'load_config',
    'build_signal_specs',
    'get_config_value',
    # 数据类型
    'ThrottleState',
    'SignalSpec',
    'Frame',
    'HealthSnapshot',
    'AdapterErrorEvent',
    'ThrottleStatus',
    'HealthSchedulerStatus',
    # 接口
    'IBusAdapter',
    'ITelemetrySink',
    # 异常
    'BridgeError',
    'ConfigurationError',
    'ConfigValidationError',
    'DecodeRangeError',
    'OutOfRangeError',
    'HealthQueryError',
    'FatalBridgeError',
    'TransportConnectError',
    'AdapterError',
]
