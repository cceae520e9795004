"""配置模块

提供统一的配置接口，支持：
- 默认配置 (DEFAULT_CONFIG)
- 配置验证 (validate_config)
- 文件、.env 与环境变量加载 (load_config)

配置文件结构:
- system_config.py: 系统、日志、遥测、通道配置
- throttle_config.py: 节流与健康调度配置
- signal_config.py: 信号声明
- validation.py: 配置验证逻辑
- loader.py: YAML 文件、.env 文件与环境变量加载

使用示例:
    from telemetry_bridge.config import load_config, build_signal_specs

    config = load_config('bridge.yaml')
    specs = build_signal_specs(config)
"""

from .default_config import (
    DEFAULT_CONFIG,
    CONFIG_VALIDATION_RULES,
    validate_config,
    get_config_value,
    ConfigValidationError,
    SYSTEM_CONFIG,
    LOGGING_CONFIG,
    TELEMETRY_CONFIG,
    CHANNELS_CONFIG,
    THROTTLE_CONFIG,
    HEALTH_CONFIG,
    SIGNALS_CONFIG,
)
from .loader import (
    load_config,
    load_yaml_file,
    load_env_file,
    apply_env_overrides,
    build_signal_specs,
    deep_merge,
    parse_bool,
    ENV_OVERRIDES,
)

__all__ = [
    'DEFAULT_CONFIG',
    'CONFIG_VALIDATION_RULES',
    'validate_config',
    'get_config_value',
    'ConfigValidationError',
    'load_config',
    'load_yaml_file',
    'load_env_file',
    'apply_env_overrides',
    'build_signal_specs',
    'deep_merge',
    'parse_bool',
    'ENV_OVERRIDES',
    'SYSTEM_CONFIG',
    'LOGGING_CONFIG',
    'TELEMETRY_CONFIG',
    'CHANNELS_CONFIG',
    'THROTTLE_CONFIG',
    'HEALTH_CONFIG',
    'SIGNALS_CONFIG',
]
