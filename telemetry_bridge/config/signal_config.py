"""信号配置

信号名 → 信号声明。每个声明在指定帧的载荷中定位一个大端无符号整数，
并按 scale (以及可选的 secondary_scale) 缩放。

默认车型: Toyota Prius '16-'18
- 地址 0xB4 (180)
- 字节 4: 编码器
- 字节 5, 6: 速度 (0.01 kph/LSB)
- 字节 7: 校验和
- secondary_scale: kph → mph
"""

SIGNALS_CONFIG = {
    'speed': {
        'frame_address': 0xB4,
        'byte_offset': 5,
        'byte_length': 2,
        'scale': 0.01,
        'secondary_scale': 0.621371,
    },
}

# 信号字段的范围规则在 validation.validate_logical_consistency 中逐个检查，
# 因为信号名不固定，无法写成静态的 key_path
SIGNAL_FIELD_RULES = {
    'frame_address': (0, 0x1FFFFFFF, '帧地址 (29 位扩展帧上限)'),
    'byte_offset': (0, 63, '起始字节'),
    'byte_length': (1, 8, '字节数'),
}
