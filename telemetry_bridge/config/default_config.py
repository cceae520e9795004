"""默认配置

本模块合并所有配置子模块，提供统一的配置接口。

配置结构:
- system_config.py: 系统、日志、遥测、通道配置
- throttle_config.py: 节流与健康调度配置
- signal_config.py: 信号声明
- validation.py: 配置验证

使用示例:
    import copy
    from telemetry_bridge.config import DEFAULT_CONFIG

    config = copy.deepcopy(DEFAULT_CONFIG)
    config['throttle']['pause_threshold'] = 5
"""
from typing import Dict, Any, List, Tuple
import copy

from .system_config import (
    SYSTEM_CONFIG,
    LOGGING_CONFIG,
    TELEMETRY_CONFIG,
    CHANNELS_CONFIG,
    SYSTEM_VALIDATION_RULES,
)
from .throttle_config import THROTTLE_CONFIG, HEALTH_CONFIG, THROTTLE_VALIDATION_RULES
from .signal_config import SIGNALS_CONFIG

from .validation import (
    ConfigValidationError,
    ValidationSeverity,
    get_config_value,
    validate_full_config,
)


# =============================================================================
# 合并所有配置
# =============================================================================
DEFAULT_CONFIG: Dict[str, Any] = {
    'system': SYSTEM_CONFIG.copy(),
    'logging': LOGGING_CONFIG.copy(),
    'telemetry': TELEMETRY_CONFIG.copy(),
    'channels': CHANNELS_CONFIG.copy(),
    'throttle': THROTTLE_CONFIG.copy(),
    'health': HEALTH_CONFIG.copy(),
    'signals': copy.deepcopy(SIGNALS_CONFIG),
}


# =============================================================================
# 合并所有验证规则
# =============================================================================
CONFIG_VALIDATION_RULES: Dict[str, tuple] = {}
CONFIG_VALIDATION_RULES.update(SYSTEM_VALIDATION_RULES)
CONFIG_VALIDATION_RULES.update(THROTTLE_VALIDATION_RULES)


def validate_config(config: Dict[str, Any], raise_on_error: bool = True) -> List[Tuple[str, str]]:
    """
    验证配置参数

    WARNING 级别的问题只记录日志，不出现在返回值中。

    Args:
        config: 配置字典
        raise_on_error: 是否在发现错误时抛出异常

    Returns:
        阻止启动的错误列表，每个元素为 (key_path, error_message)

    Raises:
        ConfigValidationError: 当 raise_on_error=True 且发现错误时

    Example:
        >>> config = copy.deepcopy(DEFAULT_CONFIG)
        >>> config['throttle']['pause_threshold'] = 0
        >>> validate_config(config, raise_on_error=False)
        [('throttle.pause_threshold', '暂停阈值 (帧批次) 值 0 小于最小值 1')]
    """
    errors = validate_full_config(config, CONFIG_VALIDATION_RULES, raise_on_error)
    return [(key, msg) for key, msg, severity in errors
            if severity != ValidationSeverity.WARNING]


__all__ = [
    'DEFAULT_CONFIG',
    'CONFIG_VALIDATION_RULES',
    'validate_config',
    'get_config_value',
    'ConfigValidationError',
    'SYSTEM_CONFIG',
    'LOGGING_CONFIG',
    'TELEMETRY_CONFIG',
    'CHANNELS_CONFIG',
    'THROTTLE_CONFIG',
    'HEALTH_CONFIG',
    'SIGNALS_CONFIG',
]
