"""
统一日志配置模块

提供统一的日志接口。日志级别只影响可观测性，不影响桥接行为。

使用方式:
=========

方式 1: 标准 Python 日志 (推荐)
    import logging
    logger = logging.getLogger(__name__)

    # 日志配置由 main.py 通过 configure_logging() 统一设置

方式 2: 使用 ThrottledLogger (频繁日志场景)
    from telemetry_bridge.core.logging_config import ThrottledLogger
    throttled = ThrottledLogger(logger, min_interval=5.0)

    # 用于避免高频帧流中的重复错误导致日志泛滥
    # 例如：畸形帧解码失败、接收端发布失败

日志级别规范:
=============

DEBUG:
    - 逐批帧计数、解码值、发布内容

VERBOSE:
    - 介于 DEBUG 和 INFO 之间
    - 连接成功、设备标识等一次性细节

INFO:
    - 生命周期事件：启动、停止、暂停/恢复统计

WARNING:
    - 单周期可恢复错误：解码范围错误、健康查询失败

ERROR:
    - 致命错误：传输连接失败、适配器故障

级别名称:
=========

LOG_LEVEL 环境变量和 logging.level 配置接受:
error, warn, warning, info, verbose, debug, 或整数
"""
import logging
import sys
import time
from typing import Union

# 默认日志格式
DEFAULT_FORMAT = '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
DEFAULT_LEVEL = logging.ERROR

# 自定义 VERBOSE 级别
VERBOSE = 15
logging.addLevelName(VERBOSE, 'VERBOSE')

LEVEL_NAMES = {
    'error': logging.ERROR,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'info': logging.INFO,
    'verbose': VERBOSE,
    'debug': logging.DEBUG,
    'critical': logging.CRITICAL,
}


def parse_log_level(level: Union[str, int, None], default: int = DEFAULT_LEVEL) -> int:
    """
    解析日志级别

    Args:
        level: 级别名称 (不区分大小写)、整数或数字字符串
        default: 无法解析时使用的级别

    Returns:
        logging 模块的整数级别
    """
    if level is None:
        return default
    if isinstance(level, bool):
        return default
    if isinstance(level, int):
        return level
    text = str(level).strip().lower()
    if text.isdigit():
        return int(text)
    return LEVEL_NAMES.get(text, default)


def configure_logging(level: Union[str, int, None] = DEFAULT_LEVEL,
                      format_str: str = DEFAULT_FORMAT) -> int:
    """
    配置全局日志设置

    Args:
        level: 日志级别（名称或整数）
        format_str: 日志格式字符串

    Returns:
        实际生效的整数级别
    """
    resolved = parse_log_level(level)
    logging.basicConfig(
        level=resolved,
        format=format_str,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    return resolved


def log_verbose(logger: logging.Logger, msg: str, *args, **kwargs) -> None:
    """以 VERBOSE 级别记录日志"""
    logger.log(VERBOSE, msg, *args, **kwargs)


class ThrottledLogger:
    """
    节流日志器

    用于避免频繁触发的日志消息导致日志泛滥。

    使用示例:
        throttled = ThrottledLogger(logger, min_interval=5.0)
        # 以下消息最多每 5 秒记录一次
        throttled.warning("Decode range error", key="decode_range")
    """

    def __init__(self, logger: logging.Logger, min_interval: float = 1.0):
        """
        Args:
            logger: 底层日志器
            min_interval: 同一 key 的最小日志间隔（秒）
        """
        self._logger = logger
        self._min_interval = min_interval
        self._last_log_times: dict = {}
        self._suppressed: dict = {}

    def _should_log(self, key: str) -> bool:
        """检查是否应该记录日志"""
        current_time = time.monotonic()
        last_time = self._last_log_times.get(key)

        if last_time is None or current_time - last_time >= self._min_interval:
            self._last_log_times[key] = current_time
            return True
        self._suppressed[key] = self._suppressed.get(key, 0) + 1
        return False

    def suppressed_count(self, key: str) -> int:
        """获取某个 key 被抑制的消息数"""
        return self._suppressed.get(key, 0)

    def debug(self, msg: str, key: str = None, *args, **kwargs):
        """记录 DEBUG 级别日志（带节流）"""
        if key is None or self._should_log(key):
            self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, key: str = None, *args, **kwargs):
        """记录 INFO 级别日志（带节流）"""
        if key is None or self._should_log(key):
            self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, key: str = None, *args, **kwargs):
        """记录 WARNING 级别日志（带节流）"""
        if key is None or self._should_log(key):
            self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, key: str = None, *args, **kwargs):
        """记录 ERROR 级别日志（带节流）"""
        if key is None or self._should_log(key):
            self._logger.error(msg, *args, **kwargs)
