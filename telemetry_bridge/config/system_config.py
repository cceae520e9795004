"""系统基础配置

包含桥接器的基础系统参数：
- 日志级别
- 遥测接收端连接参数
- 遥测通道 ID
"""
from ..core.constants import (
    CHANNEL_SPEED, CHANNEL_VOLTAGE, CHANNEL_CURRENT,
    CHANNEL_GAS_INTERCEPTOR_DETECTED, CHANNEL_START_SIGNAL_DETECTED,
    CHANNEL_CONTROLS_ALLOWED,
)

# 系统配置
SYSTEM_CONFIG = {
    'name': 'telemetry-bridge',
    'shutdown_timeout_s': 2.0,    # 停止时等待后台线程退出的最长时间 (秒)
}

# 日志配置
# 注意: 日志级别只影响可观测性，不影响桥接行为
LOGGING_CONFIG = {
    'level': 'error',                  # error / warn / info / verbose / debug
    'throttle_interval_s': 5.0,        # 重复错误日志的最小间隔 (秒)
}

# 遥测配置
# 注意:
# - enabled=False 时桥接器仍然运行适配器和解码器用于本地观察，
#   但从不调用接收端，也不启动健康调度器
# - 凭据和主机通常来自环境变量 MQTT_USER / MQTT_PASS / MQTT_CLIENT / MQTT_HOST
TELEMETRY_CONFIG = {
    'enabled': True,
    'username': '',
    'password': '',
    'client_id': '',
    'host': '',
    'async_publish': True,             # 发布在独立工作线程中执行，不阻塞帧处理和健康轮询
    'publish_queue_warn': 100,         # 待发布队列超过此长度时告警
    'max_consecutive_failures_log': 5, # 连续发布失败详细记录的次数，之后降级为 debug
}

# 遥测通道 ID
CHANNELS_CONFIG = {
    'speed': CHANNEL_SPEED,
    'voltage': CHANNEL_VOLTAGE,
    'current': CHANNEL_CURRENT,
    'gas_interceptor_detected': CHANNEL_GAS_INTERCEPTOR_DETECTED,
    'start_signal_detected': CHANNEL_START_SIGNAL_DETECTED,
    'controls_allowed': CHANNEL_CONTROLS_ALLOWED,
}

# 系统配置验证规则
SYSTEM_VALIDATION_RULES = {
    'system.shutdown_timeout_s': (0.0, 60.0, '停止等待时间 (秒)'),
    'logging.throttle_interval_s': (0.0, 3600.0, '重复日志最小间隔 (秒)'),
    'telemetry.publish_queue_warn': (1, 100000, '待发布队列告警长度'),
    'telemetry.max_consecutive_failures_log': (1, 1000, '连续发布失败详细记录次数'),
    'channels.speed': (0, None, '速度通道 ID'),
    'channels.voltage': (0, None, '电压通道 ID'),
    'channels.current': (0, None, '电流通道 ID'),
    'channels.gas_interceptor_detected': (0, None, '油门拦截器检测通道 ID'),
    'channels.start_signal_detected': (0, None, '启动信号检测通道 ID'),
    'channels.controls_allowed': (0, None, '控制允许通道 ID'),
}
