"""桥接器管理模块"""
from .bridge import Bridge

__all__ = ['Bridge']
