"""配置加载

加载顺序 (后者覆盖前者):
1. DEFAULT_CONFIG
2. YAML 配置文件 (可选)
3. 环境变量 (进程环境优先于 .env 文件)

环境变量:
=========
    MQTT_USER                  → telemetry.username
    MQTT_PASS                  → telemetry.password
    MQTT_CLIENT                → telemetry.client_id
    MQTT_HOST                  → telemetry.host
    TELEMETRY_ENABLED          → telemetry.enabled      (true/false/1/0/yes/no/on/off)
    LOG_LEVEL                  → logging.level
    THROTTLE_PAUSE_THRESHOLD   → throttle.pause_threshold (int)
    THROTTLE_PAUSE_DURATION_S  → throttle.pause_duration_s (float)
    HEALTH_INTERVAL_S          → health.interval_s (float)

YAML 示例:
==========
    telemetry:
      enabled: false
    throttle:
      pause_threshold: 5
      pause_duration_s: 0.5
    signals:
      speed:
        frame_address: 180
        byte_offset: 5
        byte_length: 2
        scale: 0.01
"""
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
import copy
import logging
import os

import yaml
from dotenv import dotenv_values

from ..core.data_types import SignalSpec
from ..core.exceptions import ConfigurationError
from .default_config import DEFAULT_CONFIG, validate_config

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {'1', 'true', 'yes', 'on'}
_FALSE_STRINGS = {'0', 'false', 'no', 'off', ''}


def parse_bool(value: Any) -> bool:
    """
    解析布尔值

    Raises:
        ConfigurationError: 无法识别的取值
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigurationError(f"cannot interpret {value!r} as a boolean")


# 环境变量 → (配置路径, 类型转换)
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    'MQTT_USER': ('telemetry.username', str),
    'MQTT_PASS': ('telemetry.password', str),
    'MQTT_CLIENT': ('telemetry.client_id', str),
    'MQTT_HOST': ('telemetry.host', str),
    'TELEMETRY_ENABLED': ('telemetry.enabled', parse_bool),
    'LOG_LEVEL': ('logging.level', str),
    'THROTTLE_PAUSE_THRESHOLD': ('throttle.pause_threshold', int),
    'THROTTLE_PAUSE_DURATION_S': ('throttle.pause_duration_s', float),
    'HEALTH_INTERVAL_S': ('health.interval_s', float),
}


def deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    递归合并字典，override 中的值覆盖 base

    base 会被原地修改并返回。
    """
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def set_config_value(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """按点分隔路径写入配置值，中间层不存在时创建"""
    keys = key_path.split('.')
    node = config
    for key in keys[:-1]:
        node = node.setdefault(key, {})
    node[keys[-1]] = value


def load_yaml_file(path: str) -> Dict[str, Any]:
    """
    读取 YAML 配置文件

    Raises:
        ConfigurationError: 文件无法读取、解析失败或顶层不是字典
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping at top level")
    return data


def load_env_file(path: str) -> Dict[str, str]:
    """
    读取 .env 文件

    文件不存在时返回空字典。只有键没有值的行被忽略。
    """
    if not os.path.isfile(path):
        logger.debug(f"No env file at {path}")
        return {}
    values = dotenv_values(path, encoding='utf-8')
    return {key: value for key, value in values.items() if value is not None}


def apply_env_overrides(config: Dict[str, Any],
                        environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    应用环境变量覆盖

    Args:
        config: 配置字典（原地修改）
        environ: 环境变量映射，默认 os.environ

    Raises:
        ConfigurationError: 环境变量取值无法转换
    """
    if environ is None:
        environ = os.environ

    for env_name, (key_path, convert) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None:
            continue
        try:
            value = convert(raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid value for {env_name}: {raw!r}") from e
        set_config_value(config, key_path, value)
        logger.debug(f"Config override from {env_name} -> {key_path}")

    return config


def load_config(path: Optional[str] = None,
                environ: Optional[Mapping[str, str]] = None,
                validate: bool = True,
                env_file: Optional[str] = None) -> Dict[str, Any]:
    """
    加载完整配置

    Args:
        path: YAML 配置文件路径，None 表示不读取文件
        environ: 环境变量映射，默认 os.environ
        validate: 是否验证配置
        env_file: .env 文件路径，其中的变量不覆盖 environ 中已有的同名变量

    Returns:
        配置字典（DEFAULT_CONFIG 的独立副本）

    Raises:
        ConfigurationError: 文件或环境变量无效
        ConfigValidationError: 验证失败
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if path:
        deep_merge(config, load_yaml_file(path))
        logger.debug(f"Loaded config file {path}")

    if environ is None:
        environ = os.environ
    if env_file:
        merged = load_env_file(env_file)
        merged.update(environ)
        environ = merged
    apply_env_overrides(config, environ)

    if validate:
        validate_config(config, raise_on_error=True)

    return config


def build_signal_specs(config: Dict[str, Any]) -> Dict[str, SignalSpec]:
    """
    构建信号名 → SignalSpec 映射

    Raises:
        ConfigurationError: 任一信号声明无效
    """
    signals = config.get('signals', {})
    return {name: SignalSpec.from_dict(section) for name, section in signals.items()}
