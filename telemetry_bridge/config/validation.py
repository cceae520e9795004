"""配置验证模块

提供配置参数的验证功能：
- 范围检查
- 类型检查
- 逻辑一致性检查
- 错误严重级别分类

错误严重级别:
- FATAL: 致命错误，必须阻止启动（如跟踪的信号不存在）
- ERROR: 严重错误，默认阻止启动
- WARNING: 警告，记录但不阻止启动
"""
from typing import Dict, Any, List, Tuple
from enum import Enum
import logging

from ..core.exceptions import ConfigValidationError
from .signal_config import SIGNAL_FIELD_RULES

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """验证错误严重级别"""
    FATAL = 'fatal'      # 致命错误，必须阻止启动
    ERROR = 'error'      # 严重错误，默认阻止启动
    WARNING = 'warning'  # 警告，记录但不阻止启动


def _is_numeric(value) -> bool:
    """检查值是否为数值类型"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_config_value(
    config: Dict[str, Any],
    key_path: str,
    default: Any = None
) -> Any:
    """
    从配置字典中获取值，支持点分隔的路径

    Args:
        config: 配置字典
        key_path: 点分隔的键路径，如 'throttle.pause_threshold'
        default: 默认值

    Returns:
        配置值或默认值

    Example:
        >>> config = {'throttle': {'pause_threshold': 3}}
        >>> get_config_value(config, 'throttle.pause_threshold')
        3
    """
    keys = key_path.split('.')
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def validate_config(
    config: Dict[str, Any],
    validation_rules: Dict[str, Tuple],
    raise_on_error: bool = True
) -> List[Tuple[str, str]]:
    """
    验证配置参数范围

    Args:
        config: 配置字典
        validation_rules: 验证规则字典，格式为 {key_path: (min, max, description)}
        raise_on_error: 是否在发现错误时抛出异常

    Returns:
        错误列表，每个元素为 (key_path, error_message)

    Raises:
        ConfigValidationError: 当 raise_on_error=True 且发现错误时
    """
    errors = []

    for key_path, (min_val, max_val, description) in validation_rules.items():
        value = get_config_value(config, key_path)

        if value is None:
            continue  # 使用默认值，跳过验证

        if not _is_numeric(value):
            errors.append((key_path, f'{description} 类型错误，期望数值，实际为 {type(value).__name__}'))
            continue

        if min_val is not None and value < min_val:
            errors.append((key_path, f'{description} 值 {value} 小于最小值 {min_val}'))
        elif max_val is not None and value > max_val:
            errors.append((key_path, f'{description} 值 {value} 大于最大值 {max_val}'))

    if errors and raise_on_error:
        error_messages = '\n'.join([f'  - {key}: {msg}' for key, msg in errors])
        raise ConfigValidationError(f'配置验证失败:\n{error_messages}', errors)

    return errors


def _validate_signal(name: str, signal: Any) -> List[Tuple[str, str, ValidationSeverity]]:
    """检查单个信号声明"""
    errors = []
    prefix = f'signals.{name}'

    if not isinstance(signal, dict):
        errors.append((prefix, f'信号声明必须是字典，实际为 {type(signal).__name__}',
                       ValidationSeverity.FATAL))
        return errors

    for field_name, (min_val, max_val, description) in SIGNAL_FIELD_RULES.items():
        value = signal.get(field_name)
        key = f'{prefix}.{field_name}'
        if value is None:
            errors.append((key, f'缺少{description}', ValidationSeverity.FATAL))
        elif not isinstance(value, int) or isinstance(value, bool):
            errors.append((key, f'{description} 必须是整数，实际为 {value!r}', ValidationSeverity.FATAL))
        elif not min_val <= value <= max_val:
            errors.append((key, f'{description} 值 {value} 超出范围 [{min_val}, {max_val}]',
                           ValidationSeverity.FATAL))

    for field_name in ('scale', 'secondary_scale'):
        value = signal.get(field_name)
        if value is None:
            continue
        if not _is_numeric(value):
            errors.append((f'{prefix}.{field_name}', f'缩放系数必须是数值，实际为 {value!r}',
                           ValidationSeverity.FATAL))
        elif value == 0:
            errors.append((f'{prefix}.{field_name}', '缩放系数为 0，信号值将恒为 0',
                           ValidationSeverity.WARNING))

    return errors


def validate_logical_consistency(config: Dict[str, Any]) -> List[Tuple[str, str, ValidationSeverity]]:
    """
    验证配置的逻辑一致性

    检查配置参数之间的逻辑关系，返回带严重级别的错误列表。

    Args:
        config: 配置字典

    Returns:
        错误列表，每个元素为 (key_path, error_message, severity)
    """
    errors = []

    def add_error(key: str, msg: str, severity: ValidationSeverity = ValidationSeverity.ERROR):
        errors.append((key, msg, severity))

    # ==========================================================================
    # 信号声明 (FATAL 级别)
    # ==========================================================================
    signals = config.get('signals', {})
    if not isinstance(signals, dict) or not signals:
        add_error('signals', '至少需要声明一个信号', ValidationSeverity.FATAL)
        signals = {}

    for name, signal in signals.items():
        errors.extend(_validate_signal(name, signal))

    tracked = get_config_value(config, 'throttle.signal')
    if tracked not in signals:
        add_error('throttle.signal', f'跟踪的信号 {tracked!r} 未在 signals 中声明',
                  ValidationSeverity.FATAL)

    # ==========================================================================
    # 节流参数 (ERROR 级别)
    # ==========================================================================
    pause_threshold = get_config_value(config, 'throttle.pause_threshold')
    if pause_threshold is not None and not isinstance(pause_threshold, int):
        add_error('throttle.pause_threshold', f'暂停阈值必须是整数，实际为 {pause_threshold!r}')

    # ==========================================================================
    # 健康轮询 (WARNING 级别)
    # ==========================================================================
    interval = get_config_value(config, 'health.interval_s')
    query_timeout = get_config_value(config, 'health.query_timeout_s')
    if _is_numeric(interval) and _is_numeric(query_timeout) and query_timeout > interval:
        add_error('health.query_timeout_s',
                  f'健康查询超时 ({query_timeout}s) 大于轮询周期 ({interval}s)，'
                  f'慢查询会吞掉后续周期',
                  ValidationSeverity.WARNING)

    # ==========================================================================
    # 遥测 (WARNING 级别)
    # ==========================================================================
    enabled = get_config_value(config, 'telemetry.enabled', True)
    if not isinstance(enabled, bool):
        add_error('telemetry.enabled', f'遥测开关必须是布尔值，实际为 {enabled!r}')
    elif enabled and not get_config_value(config, 'telemetry.host'):
        add_error('telemetry.host', '遥测已启用但未配置主机 (MQTT_HOST)',
                  ValidationSeverity.WARNING)

    channels = config.get('channels', {})
    if isinstance(channels, dict):
        seen = {}
        for name, channel_id in channels.items():
            if channel_id in seen:
                add_error(f'channels.{name}',
                          f'通道 {channel_id} 与 {seen[channel_id]} 重复',
                          ValidationSeverity.WARNING)
            else:
                seen[channel_id] = name

    return errors


def validate_full_config(
    config: Dict[str, Any],
    validation_rules: Dict[str, Tuple],
    raise_on_error: bool = True
) -> List[Tuple[str, str, ValidationSeverity]]:
    """
    完整配置验证（包括范围检查和逻辑一致性检查）

    Args:
        config: 配置字典
        validation_rules: 验证规则字典
        raise_on_error: 是否在发现 FATAL/ERROR 级别错误时抛出异常

    Returns:
        错误列表，每个元素为 (key_path, error_message, severity)

    Raises:
        ConfigValidationError: 当 raise_on_error=True 且发现 FATAL/ERROR 级别错误时
    """
    range_errors = validate_config(config, validation_rules, raise_on_error=False)
    errors = [(key, msg, ValidationSeverity.ERROR) for key, msg in range_errors]
    errors.extend(validate_logical_consistency(config))

    fatal_errors = [(k, m, s) for k, m, s in errors if s == ValidationSeverity.FATAL]
    error_errors = [(k, m, s) for k, m, s in errors if s == ValidationSeverity.ERROR]
    warning_errors = [(k, m, s) for k, m, s in errors if s == ValidationSeverity.WARNING]

    for key, msg, _ in warning_errors:
        logger.warning(f"Config warning [{key}]: {msg}")

    blocking_errors = fatal_errors + error_errors
    if blocking_errors and raise_on_error:
        if fatal_errors:
            fatal_msgs = '\n'.join([f'  - [FATAL] {key}: {msg}' for key, msg, _ in fatal_errors])
            raise ConfigValidationError(f'配置存在致命错误，无法启动:\n{fatal_msgs}',
                                        [(k, m) for k, m, _ in fatal_errors])

        error_msgs = '\n'.join([f'  - [ERROR] {key}: {msg}' for key, msg, _ in error_errors])
        raise ConfigValidationError(f'配置验证失败:\n{error_msgs}',
                                    [(k, m) for k, m, _ in error_errors])

    return errors
