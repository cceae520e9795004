"""
帧解码器测试

测试覆盖:
1. 默认速度信号的解码和缩放
2. 无匹配帧
3. 载荷长度不足
4. 字节序和长度边界
5. SignalSpec 声明校验
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from telemetry_bridge.core.data_types import SignalSpec
from telemetry_bridge.core.exceptions import (
    ConfigurationError, DecodeRangeError, OutOfRangeError,
)
from telemetry_bridge.decoder.frame_decoder import (
    decode, find_frame, read_unsigned_be,
)
from telemetry_bridge.mock.test_data_generator import (
    DEFAULT_SPEED_SPEC, create_frame, create_frame_batch, create_speed_frame,
)


class TestDecode:
    """decode() 基本行为"""

    def test_prius_speed_example(self):
        """地址 180，字节 5-6 为 0x03E8 → 6.21371 mph"""
        frame = create_frame(180, [0, 0, 0, 0, 0, 0x03, 0xE8, 0])
        spec = SignalSpec(frame_address=180, byte_offset=5, byte_length=2,
                          scale=0.01, secondary_scale=0.621371)

        assert decode([frame], spec) == pytest.approx(6.21371)

    def test_no_matching_frame_returns_none(self):
        """批次中没有匹配地址时返回 None"""
        batch = create_frame_batch(speed_kph=None)
        assert decode(batch, DEFAULT_SPEED_SPEC) is None

    def test_empty_batch_returns_none(self):
        """空批次返回 None"""
        assert decode([], DEFAULT_SPEED_SPEC) is None

    def test_speed_frame_among_noise(self):
        """速度帧混在其他帧中"""
        batch = create_frame_batch(speed_kph=50.0)
        assert decode(batch, DEFAULT_SPEED_SPEC) == pytest.approx(50.0 * 0.621371)

    def test_first_matching_frame_wins(self):
        """多个匹配帧时使用第一个"""
        batch = [create_speed_frame(20.0), create_speed_frame(90.0)]
        assert decode(batch, DEFAULT_SPEED_SPEC) == pytest.approx(20.0 * 0.621371)

    def test_scale_without_secondary(self):
        """没有 secondary_scale 时只乘 scale"""
        spec = SignalSpec(frame_address=0x10, byte_offset=0, byte_length=1, scale=0.5)
        frame = create_frame(0x10, [200])
        assert decode([frame], spec) == pytest.approx(100.0)

    def test_unit_scale_returns_raw_value(self):
        """scale 默认为 1"""
        spec = SignalSpec(frame_address=0x10, byte_offset=1, byte_length=2)
        frame = create_frame(0x10, [0xFF, 0x12, 0x34])
        assert decode([frame], spec) == 0x1234

    def test_decode_is_repeatable(self):
        """解码无副作用，重复调用结果一致"""
        batch = create_frame_batch(speed_kph=33.3)
        first = decode(batch, DEFAULT_SPEED_SPEC)
        second = decode(batch, DEFAULT_SPEED_SPEC)
        assert first == second


class TestDecodeRange:
    """载荷长度不足"""

    def test_short_payload_raises(self):
        """offset + length 超出载荷长度时抛出 DecodeRangeError"""
        frame = create_frame(0xB4, [0, 0, 0, 0, 0, 0x03])

        with pytest.raises(DecodeRangeError) as exc_info:
            decode([frame], DEFAULT_SPEED_SPEC)

        error = exc_info.value
        assert error.frame_address == 0xB4
        assert error.payload_length == 6
        assert error.required_length == 7

    def test_out_of_range_alias(self):
        """OutOfRangeError 与 DecodeRangeError 是同一个类型"""
        frame = create_frame(0xB4, b'')
        with pytest.raises(OutOfRangeError):
            decode([frame], DEFAULT_SPEED_SPEC)

    def test_exact_fit_is_valid(self):
        """读取区间恰好到载荷末尾"""
        frame = create_frame(0xB4, [0, 0, 0, 0, 0, 0x27, 0x10])
        assert decode([frame], DEFAULT_SPEED_SPEC) == pytest.approx(100.0 * 0.621371)

    def test_non_matching_short_frames_ignored(self):
        """不匹配的短帧不会引发错误"""
        batch = [create_frame(0x1A0, b'\x01'), create_speed_frame(10.0)]
        assert decode(batch, DEFAULT_SPEED_SPEC) == pytest.approx(10.0 * 0.621371)


class TestReadUnsignedBigEndian:
    """read_unsigned_be() 边界"""

    def test_big_endian_order(self):
        assert read_unsigned_be(b'\x01\x02', 0, 2) == 0x0102

    def test_single_byte(self):
        assert read_unsigned_be(b'\x00\xAB', 1, 1) == 0xAB

    def test_eight_bytes_max(self):
        """8 字节全 0xFF 不溢出"""
        assert read_unsigned_be(b'\xff' * 8, 0, 8) == 2 ** 64 - 1

    def test_accepts_bytearray_and_memoryview(self):
        data = bytearray([0, 0x12, 0x34, 0x56])
        assert read_unsigned_be(data, 1, 3) == 0x123456
        assert read_unsigned_be(memoryview(bytes(data)), 1, 3) == 0x123456

    def test_out_of_range(self):
        with pytest.raises(DecodeRangeError):
            read_unsigned_be(b'\x00\x01', 1, 2)


class TestDecodeHelpers:
    """find_frame()"""

    def test_find_frame(self):
        batch = create_frame_batch(speed_kph=10.0)
        frame = find_frame(batch, 0xB4)
        assert frame is not None
        assert frame.frame_address == 0xB4
        assert find_frame(batch, 0x7FF) is None


class TestSignalSpec:
    """SignalSpec 声明校验"""

    @pytest.mark.parametrize('length', [0, 9])
    def test_invalid_length(self, length):
        with pytest.raises(ConfigurationError):
            SignalSpec(frame_address=0xB4, byte_offset=0, byte_length=length)

    def test_negative_offset(self):
        with pytest.raises(ConfigurationError):
            SignalSpec(frame_address=0xB4, byte_offset=-1, byte_length=2)

    def test_non_finite_scale(self):
        with pytest.raises(ConfigurationError):
            SignalSpec(frame_address=0xB4, byte_offset=0, byte_length=2, scale=float('nan'))

    def test_from_dict(self):
        spec = SignalSpec.from_dict({
            'frame_address': 180, 'byte_offset': 5, 'byte_length': 2,
            'scale': 0.01, 'secondary_scale': 0.621371,
        })
        assert spec == DEFAULT_SPEED_SPEC
        assert spec.end_offset == 7

    def test_from_dict_missing_field(self):
        with pytest.raises(ConfigurationError):
            SignalSpec.from_dict({'frame_address': 180, 'byte_offset': 5})

    def test_spec_is_immutable(self):
        with pytest.raises(Exception):
            DEFAULT_SPEED_SPEC.byte_offset = 3
