"""核心模块"""
from .enums import ThrottleState
from .data_types import (
    SignalSpec, Frame, HealthSnapshot, AdapterErrorEvent,
    ThrottleStatus, HealthSchedulerStatus,
)
from .interfaces import (
    ILifecycleComponent, LifecycleState,
    IBusAdapter, ITelemetrySink, FrameSubscription,
)
from .constants import (
    CHANNEL_SPEED, CHANNEL_VOLTAGE, CHANNEL_CURRENT,
    CHANNEL_GAS_INTERCEPTOR_DETECTED, CHANNEL_START_SIGNAL_DETECTED,
    CHANNEL_CONTROLS_ALLOWED, HEALTH_FIELDS,
)
from .exceptions import (
    BridgeError, ConfigurationError, ConfigValidationError,
    DecodeRangeError, OutOfRangeError, HealthQueryError,
    FatalBridgeError, TransportConnectError, AdapterError,
)
