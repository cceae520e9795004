"""枚举定义"""
from enum import IntEnum


class ThrottleState(IntEnum):
    """节流控制器状态枚举"""
    LISTENING = 0    # 已订阅帧事件，逐批解码
    PAUSED = 1       # 已取消订阅，等待暂停定时器到期
