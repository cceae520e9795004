#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Telemetry Bridge 安装脚本

安装方法:
    # 可编辑安装 (推荐开发时使用)
    pip install -e .[test]
    
    # 普通安装
    pip install .
"""

from setuptools import setup, find_packages

setup(
    name='telemetry-bridge',
    version='1.0.0',
    author='Telemetry Bridge Team',
    description='CAN 总线信号节流转发到远程遥测通道',
    
    # 自动查找包
    packages=find_packages(include=['telemetry_bridge', 'telemetry_bridge.*']),
    
    # 依赖
    install_requires=[
        'numpy>=1.20.0',
        'PyYAML>=5.4.0',
        'python-dotenv>=0.19.0',
    ],
    
    # 测试依赖
    extras_require={
        'test': ['pytest>=6.0'],
    },
    
    # 命令行入口
    entry_points={
        'console_scripts': [
            'telemetry-bridge=telemetry_bridge.main:main',
        ],
    },
    
    # Python 版本要求
    python_requires='>=3.8',
    
    # 包含数据文件
    include_package_data=True,
    zip_safe=False,
)
