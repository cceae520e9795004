"""帧解码器

从一批帧中按 SignalSpec 提取并缩放一个信号。

解码规则:
    1. 在批次中找到第一个 frame_address 匹配的帧
    2. 从 byte_offset 读取 byte_length 字节，按大端无符号整数解释
    3. 乘以 scale，若有 secondary_scale 再乘一次

无副作用，不保存帧引用，可从任意线程调用。
"""
from typing import Optional, Sequence, Union
import numpy as np

from ..core.constants import MAX_SIGNAL_BYTES
from ..core.data_types import Frame, SignalSpec
from ..core.exceptions import DecodeRangeError

# 大端字节权重 [256^7, 256^6, ..., 1]
_BYTE_WEIGHTS = np.array(
    [1 << (8 * i) for i in range(MAX_SIGNAL_BYTES - 1, -1, -1)], dtype=np.uint64
)

BytesLike = Union[bytes, bytearray, memoryview]


def read_unsigned_be(payload: BytesLike, offset: int, length: int) -> int:
    """
    读取大端无符号整数

    Args:
        payload: 帧载荷
        offset: 起始字节
        length: 字节数 (1-8)

    Returns:
        无符号整数

    Raises:
        DecodeRangeError: offset + length 超出载荷长度
    """
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        payload = bytes(payload)
    if offset + length > len(payload):
        raise DecodeRangeError(
            f"read of {length} bytes at offset {offset} exceeds payload length {len(payload)}",
            payload_length=len(payload),
            required_length=offset + length,
        )
    window = np.frombuffer(payload, dtype=np.uint8, count=length, offset=offset)
    return int(np.dot(window.astype(np.uint64), _BYTE_WEIGHTS[MAX_SIGNAL_BYTES - length:]))


def find_frame(frames: Sequence[Frame], frame_address: int) -> Optional[Frame]:
    """返回批次中第一个地址匹配的帧"""
    for frame in frames:
        if frame.frame_address == frame_address:
            return frame
    return None


def decode(frames: Sequence[Frame], spec: SignalSpec) -> Optional[float]:
    """
    从帧批次中解码信号

    Args:
        frames: 帧批次
        spec: 信号声明

    Returns:
        缩放后的信号值；批次中没有匹配帧时返回 None

    Raises:
        DecodeRangeError: 匹配帧的载荷长度不足
    """
    frame = find_frame(frames, spec.frame_address)
    if frame is None:
        return None

    try:
        raw = read_unsigned_be(frame.payload, spec.byte_offset, spec.byte_length)
    except DecodeRangeError as e:
        e.frame_address = frame.frame_address
        raise

    value = float(raw) * spec.scale
    if spec.secondary_scale is not None:
        value *= spec.secondary_scale
    return value
