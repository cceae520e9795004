"""
遥测桥接器主入口

生产环境中适配器和遥测接收端由调用方以编程方式提供:
    from telemetry_bridge import Bridge, load_config

    config = load_config('bridge.yaml')
    bridge = Bridge(my_adapter, my_sink, config)
    bridge.start()
    sys.exit(bridge.run_forever())

演示用法 (模拟适配器 + 日志接收端):
    python -m telemetry_bridge.main --demo 10
    python -m telemetry_bridge.main --demo 10 --config bridge.yaml --no-telemetry
    python -m telemetry_bridge.main --demo 10 --env-file deploy.env
"""
import argparse
import logging
import sys
import threading

from .config.loader import load_config
from .core.exceptions import ConfigurationError
from .core.logging_config import configure_logging
from .manager.bridge import Bridge
from .mock.bus_mock import MockBusAdapter
from .mock.sink_mock import LoggingSink
from .mock.test_data_generator import create_frame_batch, create_speed_profile

logger = logging.getLogger(__name__)

DEMO_RATE_HZ = 50.0
DEMO_HEALTH_INTERVAL_S = 2.0
DEFAULT_ENV_FILE = '.env'


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='telemetry_bridge',
        description='Forward throttled CAN bus signals to telemetry channels')
    parser.add_argument('--config', metavar='PATH', help='YAML configuration file')
    parser.add_argument('--env-file', metavar='PATH', default=DEFAULT_ENV_FILE,
                        help='dotenv file with MQTT_* / LOG_LEVEL variables (default: .env)')
    parser.add_argument('--no-telemetry', action='store_true',
                        help='disable telemetry publishing (decode only)')
    parser.add_argument('--demo', metavar='SECONDS', type=float,
                        help='run against a simulated adapter for SECONDS')
    return parser.parse_args(argv)


def _replay_frames(adapter: MockBusAdapter, duration_s: float, stop_event: threading.Event) -> None:
    """以固定频率向模拟适配器投递合成速度帧"""
    speeds = create_speed_profile(duration_s, DEMO_RATE_HZ)
    period = 1.0 / DEMO_RATE_HZ
    for index, speed in enumerate(speeds):
        if stop_event.wait(period):
            return
        adapter.deliver(create_frame_batch(float(speed), bus_timestamp=index))


def run_demo(config, duration_s: float) -> int:
    """演示模式"""
    health_config = config['health']
    health_config['interval_s'] = min(health_config['interval_s'], DEMO_HEALTH_INTERVAL_S)
    health_config['query_timeout_s'] = min(health_config['query_timeout_s'],
                                           health_config['interval_s'])

    adapter = MockBusAdapter()
    sink = LoggingSink(log_level=logging.WARNING)
    bridge = Bridge(adapter, sink, config)

    stop_event = threading.Event()
    feeder = threading.Thread(target=_replay_frames, args=(adapter, duration_s, stop_event),
                              name='demo-feeder', daemon=True)

    print("=" * 60)
    print("遥测桥接器 (Telemetry Bridge) 演示")
    print("=" * 60)
    print(f"遥测: {'启用' if bridge.telemetry_enabled else '禁用'}")
    print(f"暂停阈值: {bridge.throttle.pause_threshold} 批, 暂停时长: {bridge.throttle.pause_duration_s}s")
    print(f"演示时长: {duration_s}s")
    print("-" * 60)

    bridge.start()
    feeder.start()
    try:
        exit_code = bridge.run_forever(timeout=duration_s)
    except KeyboardInterrupt:
        exit_code = None
    finally:
        stop_event.set()
        feeder.join(timeout=1.0)

    if exit_code is None:
        bridge.stop()
        exit_code = bridge.exit_code

    status = bridge.get_status()
    print("-" * 60)
    print(f"设备: {status['device_id']}")
    print(f"周期: {status['throttle']['cycles_completed']}, "
          f"最后速度: {status['throttle']['last_value']}")
    print(f"发布统计: {status['publisher']}")
    print("=" * 60)
    return exit_code


def main(argv=None) -> int:
    """主函数"""
    args = parse_args(argv)

    try:
        config = load_config(args.config, env_file=args.env_file)
    except ConfigurationError as e:
        configure_logging('error')
        logger.error(f"Invalid configuration: {e}")
        return 1

    if args.no_telemetry:
        config['telemetry']['enabled'] = False
    configure_logging(config['logging']['level'])

    if args.demo is None:
        logger.error("No bus adapter available: construct Bridge with an adapter "
                     "programmatically, or pass --demo SECONDS")
        print("error: no bus adapter configured; use --demo SECONDS to run the simulation",
              file=sys.stderr)
        return 2

    return run_demo(config, args.demo)


if __name__ == '__main__':
    sys.exit(main())
