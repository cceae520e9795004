"""设备健康轮询模块"""
from .health_scheduler import HealthScheduler

__all__ = ['HealthScheduler']
