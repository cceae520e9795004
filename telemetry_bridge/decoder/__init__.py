"""帧解码模块"""
from .frame_decoder import decode, find_frame, read_unsigned_be

__all__ = ['decode', 'find_frame', 'read_unsigned_be']
