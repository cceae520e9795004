"""
自定义异常类

本模块定义了桥接系统使用的自定义异常类。

异常层次结构:
=============

BridgeError (基类)
├── ConfigurationError
│   └── ConfigValidationError
├── DecodeRangeError (别名 OutOfRangeError)
├── HealthQueryError
└── FatalBridgeError
    ├── TransportConnectError
    └── AdapterError

使用指南:
=========

1. 配置错误 (ConfigurationError)
   - 在系统启动时抛出
   - 应该阻止系统启动
   - 示例：信号字节长度超出 1-8

2. 解码范围错误 (DecodeRangeError)
   - 帧载荷过短，无法读取声明的字节区间
   - 仅影响当前周期：记录后跳过，不发生状态转换

3. 健康查询错误 (HealthQueryError)
   - 单次健康轮询失败
   - 记录后等待下一次调度，不立即重试

4. 致命错误 (FatalBridgeError)
   - 遥测传输连接失败、总线适配器故障
   - 记录后进程退出，不自动重连

注意:
=====

- 只有连接级错误会升级为进程终止
- 发布失败属于"发射即忘"语义，不抛出到调用方
"""


class BridgeError(Exception):
    """桥接错误基类"""
    pass


# =============================================================================
# 配置错误
# =============================================================================

class ConfigurationError(BridgeError):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigurationError):
    """
    配置验证错误

    当配置参数不满足验证规则时抛出。

    Attributes:
        errors: 错误列表，每个元素为 (key_path, error_message)
    """

    def __init__(self, message: str, errors: list = None):
        super().__init__(message)
        self.errors = errors or []


# =============================================================================
# 可恢复错误
# =============================================================================

class DecodeRangeError(BridgeError):
    """
    解码范围错误

    当 byte_offset + byte_length 超出帧载荷长度时抛出。

    Attributes:
        frame_address: 出错帧的地址
        payload_length: 实际载荷长度
        required_length: 读取所需的最小长度
    """

    def __init__(self, message: str, frame_address: int = None,
                 payload_length: int = None, required_length: int = None):
        super().__init__(message)
        self.frame_address = frame_address
        self.payload_length = payload_length
        self.required_length = required_length


# 与外部约定的名称保持一致
OutOfRangeError = DecodeRangeError


class HealthQueryError(BridgeError):
    """
    健康查询错误

    单次健康轮询失败（异常、超时或返回数据无效）。
    不是致命错误，下一次调度照常进行。
    """
    pass


# =============================================================================
# 致命错误
# =============================================================================

class FatalBridgeError(BridgeError):
    """
    致命错误基类

    桥接器收到此类错误后记录日志并以非零退出码结束。
    """
    exit_code = 1


class TransportConnectError(FatalBridgeError):
    """遥测传输在启动时不可达"""
    pass


class AdapterError(FatalBridgeError):
    """
    总线适配器错误

    包括适配器启动失败和通过错误通道上报的总线级故障（如断开）。

    Attributes:
        event: 适配器上报的事件名称（若有）
    """

    def __init__(self, message: str, event: str = None):
        super().__init__(message)
        self.event = event


# =============================================================================
# 导出列表
# =============================================================================

__all__ = [
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
