"""遥测发布模块"""
from .publisher import TelemetryPublisher

__all__ = ['TelemetryPublisher']
