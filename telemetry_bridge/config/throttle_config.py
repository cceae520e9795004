"""节流与健康调度配置

包含两条独立流水线的节奏参数：
- 帧流节流 (监听/暂停/恢复)
- 设备健康轮询周期

节流说明:
=========
- pause_threshold: 监听期间处理多少批帧后暂停
- pause_duration_s: 暂停时长，到期后重新订阅
- pause_threshold=1, pause_duration_s=1.0 时，每个 1 秒窗口只解码
  第一批帧并发布一次，其余时间不接收帧
- 暂停期间适配器不会投递帧（已取消订阅），帧不被缓冲

健康轮询说明:
=============
- interval_s: 轮询周期，固定速率调度，不受发布耗时影响
- query_timeout_s: 单次查询等待时间，超时视为本次失败
"""

THROTTLE_CONFIG = {
    'signal': 'speed',             # 跟踪的信号名，对应 signals 配置中的键
    'pause_threshold': 1,          # 暂停前处理的帧批次数
    'pause_duration_s': 1.0,       # 暂停时长 (秒)
}

HEALTH_CONFIG = {
    'interval_s': 300.0,           # 健康轮询周期 (秒)，默认 5 分钟
    'query_timeout_s': 10.0,       # 单次查询超时 (秒)
}

THROTTLE_VALIDATION_RULES = {
    'throttle.pause_threshold': (1, 100000, '暂停阈值 (帧批次)'),
    'throttle.pause_duration_s': (0.001, 3600.0, '暂停时长 (秒)'),
    'health.interval_s': (0.01, 86400.0, '健康轮询周期 (秒)'),
    'health.query_timeout_s': (0.001, 3600.0, '健康查询超时 (秒)'),
}
