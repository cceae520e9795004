"""
模拟组件

用于测试和演示模式，替代真实的总线适配器和遥测传输。
"""
from .bus_mock import MockBusAdapter, ManualTimer, ManualTimerFactory
from .sink_mock import RecordingSink, LoggingSink, PublishRecord
from .test_data_generator import (
    encode_speed,
    create_frame,
    create_speed_frame,
    create_frame_batch,
    create_health_snapshot,
    create_speed_profile,
    DEFAULT_SPEED_SPEC,
)

__all__ = [
    'MockBusAdapter',
    'ManualTimer',
    'ManualTimerFactory',
    'RecordingSink',
    'LoggingSink',
    'PublishRecord',
    'encode_speed',
    'create_frame',
    'create_speed_frame',
    'create_frame_batch',
    'create_health_snapshot',
    'create_speed_profile',
    'DEFAULT_SPEED_SPEC',
]
