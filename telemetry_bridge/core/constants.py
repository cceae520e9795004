"""
通用常量定义

本模块定义了桥接系统使用的遥测通道常量。

常量分类:
=========

1. 通道 ID (Channel IDs)
   - 遥测接收端以整数通道区分数据流
   - 速度通道为 0，健康字段占用 100-104

2. 类型/单位描述符 (Type/Unit Descriptors)
   - 随健康字段一起发布，接收端据此渲染
   - 速度以原始值发布，不带描述符

设计原则:
=========

- 通道 ID 的默认值在此定义，可通过 config['channels'] 覆盖
- 描述符是接收端约定，不可配置

使用示例:
=========

    from telemetry_bridge.core.constants import HEALTH_FIELDS

    for field_name, channel_key, type_hint, unit_hint in HEALTH_FIELDS:
        ...
"""
from typing import Tuple


# =============================================================================
# 通道 ID
# =============================================================================

CHANNEL_SPEED = 0
CHANNEL_VOLTAGE = 100
CHANNEL_CURRENT = 101
CHANNEL_GAS_INTERCEPTOR_DETECTED = 102
CHANNEL_START_SIGNAL_DETECTED = 103
CHANNEL_CONTROLS_ALLOWED = 104


# =============================================================================
# 类型/单位描述符
# =============================================================================

TYPE_VOLTAGE = 'voltage'
TYPE_CURRENT = 'current'
TYPE_DIGITAL_SENSOR = 'digital_sensor'

UNIT_VOLT = 'v'
UNIT_MILLIAMP = 'ma'
UNIT_DIGITAL = 'd'


# 健康字段发布表: (HealthSnapshot 字段名, channels 配置键, 类型, 单位)
# 顺序即发布顺序
HEALTH_FIELDS: Tuple[Tuple[str, str, str, str], ...] = (
    ('voltage_mv', 'voltage', TYPE_VOLTAGE, UNIT_VOLT),
    ('current_ma', 'current', TYPE_CURRENT, UNIT_MILLIAMP),
    ('gas_interceptor_detected', 'gas_interceptor_detected', TYPE_DIGITAL_SENSOR, UNIT_DIGITAL),
    ('start_signal_detected', 'start_signal_detected', TYPE_DIGITAL_SENSOR, UNIT_DIGITAL),
    ('controls_allowed', 'controls_allowed', TYPE_DIGITAL_SENSOR, UNIT_DIGITAL),
)


# =============================================================================
# 解码限制
# =============================================================================

MIN_SIGNAL_BYTES = 1
MAX_SIGNAL_BYTES = 8    # 大端无符号整数，最多 64 位
