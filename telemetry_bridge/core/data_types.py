"""
数据类型定义

本模块定义了桥接器使用的核心数据类型。

数据流:
   Frame 批次 (适配器回调) → FrameDecoder(SignalSpec) → 标量值 → 遥测通道

关键数据类型:
   - SignalSpec: 在帧载荷中定位并缩放一个信号的声明
   - Frame: 一条 CAN 总线消息，仅在适配器回调期间有效
   - HealthSnapshot: 一次健康轮询的结果
   - ThrottleStatus / HealthSchedulerStatus: 只读状态快照，用于诊断
"""
from dataclasses import dataclass
from typing import Optional, Dict, Any
import math

from .constants import MIN_SIGNAL_BYTES, MAX_SIGNAL_BYTES
from .enums import ThrottleState
from .exceptions import ConfigurationError


@dataclass(frozen=True)
class SignalSpec:
    """
    信号声明

    Attributes:
        frame_address: 携带该信号的帧地址
        byte_offset: 载荷中起始字节索引
        byte_length: 组成大端无符号整数的字节数 (1-8)
        scale: 解码后乘以的系数
        secondary_scale: 可选的二次单位换算系数 (如 kph → mph)
    """
    frame_address: int
    byte_offset: int
    byte_length: int
    scale: float = 1.0
    secondary_scale: Optional[float] = None

    def __post_init__(self):
        if self.frame_address < 0:
            raise ConfigurationError(f"frame_address must be >= 0, got {self.frame_address}")
        if self.byte_offset < 0:
            raise ConfigurationError(f"byte_offset must be >= 0, got {self.byte_offset}")
        if not MIN_SIGNAL_BYTES <= self.byte_length <= MAX_SIGNAL_BYTES:
            raise ConfigurationError(
                f"byte_length must be in [{MIN_SIGNAL_BYTES}, {MAX_SIGNAL_BYTES}], "
                f"got {self.byte_length}")
        if not math.isfinite(self.scale):
            raise ConfigurationError(f"scale must be finite, got {self.scale}")
        if self.secondary_scale is not None and not math.isfinite(self.secondary_scale):
            raise ConfigurationError(f"secondary_scale must be finite, got {self.secondary_scale}")

    @property
    def end_offset(self) -> int:
        """读取区间的结束位置（不含）"""
        return self.byte_offset + self.byte_length

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignalSpec':
        """
        从配置段构建

        Args:
            data: 形如 config['signals']['speed'] 的字典

        Raises:
            ConfigurationError: 缺少必需字段或字段取值非法
        """
        try:
            secondary = data.get('secondary_scale')
            return cls(
                frame_address=int(data['frame_address']),
                byte_offset=int(data['byte_offset']),
                byte_length=int(data['byte_length']),
                scale=float(data.get('scale', 1.0)),
                secondary_scale=float(secondary) if secondary is not None else None,
            )
        except KeyError as e:
            raise ConfigurationError(f"signal spec missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid signal spec {data!r}: {e}") from e


@dataclass(frozen=True)
class Frame:
    """
    CAN 总线帧

    由适配器在回调期间提供，解码器不得保留引用。
    """
    bus_index: int
    frame_address: int
    bus_timestamp: int
    payload: bytes


@dataclass(frozen=True)
class HealthSnapshot:
    """适配器设备健康快照"""
    voltage_mv: int
    current_ma: int
    gas_interceptor_detected: bool
    start_signal_detected: bool
    controls_allowed: bool

    # 适配器原始字段名 → 本类字段名
    RAW_KEYS = {
        'voltage': 'voltage_mv',
        'current': 'current_ma',
        'isGasInterceptorDetector': 'gas_interceptor_detected',
        'isGasInterceptorDetected': 'gas_interceptor_detected',
        'isStartSignalDetected': 'start_signal_detected',
        'controlsAreAllowed': 'controls_allowed',
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HealthSnapshot':
        """
        从适配器返回的字典构建

        同时接受适配器原始字段名和本类字段名。

        Raises:
            KeyError: 缺少字段
        """
        normalized = {cls.RAW_KEYS.get(key, key): value for key, value in data.items()}
        return cls(
            voltage_mv=int(normalized['voltage_mv']),
            current_ma=int(normalized['current_ma']),
            gas_interceptor_detected=bool(normalized['gas_interceptor_detected']),
            start_signal_detected=bool(normalized['start_signal_detected']),
            controls_allowed=bool(normalized['controls_allowed']),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'voltage_mv': self.voltage_mv,
            'current_ma': self.current_ma,
            'gas_interceptor_detected': self.gas_interceptor_detected,
            'start_signal_detected': self.start_signal_detected,
            'controls_allowed': self.controls_allowed,
        }


@dataclass(frozen=True)
class AdapterErrorEvent:
    """适配器错误通道上的事件"""
    event: str
    error: Any = None


@dataclass
class ThrottleStatus:
    """节流控制器状态快照"""
    state: ThrottleState
    pending_count: int
    pause_threshold: int
    last_value: Optional[float]
    subscribed: bool
    cycles_completed: int = 0
    publish_count: int = 0
    decode_errors: int = 0
    dropped_batches: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.name,
            'pending_count': self.pending_count,
            'pause_threshold': self.pause_threshold,
            'last_value': self.last_value,
            'subscribed': self.subscribed,
            'cycles_completed': self.cycles_completed,
            'publish_count': self.publish_count,
            'decode_errors': self.decode_errors,
            'dropped_batches': self.dropped_batches,
        }


@dataclass
class HealthSchedulerStatus:
    """健康调度器状态快照"""
    running: bool
    interval_s: float
    poll_count: int = 0
    failure_count: int = 0
    last_snapshot: Optional[HealthSnapshot] = None
    last_error: Optional[str] = None
