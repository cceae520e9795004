"""帧流节流模块"""
from .throttle_controller import ThrottleController

__all__ = ['ThrottleController']
