"""接口定义"""
from abc import ABC, abstractmethod
from concurrent.futures import Future
from enum import Enum, auto
from typing import Any, Callable, Dict, Optional, Sequence
import threading

from .data_types import AdapterErrorEvent, Frame


FrameCallback = Callable[[Sequence[Frame]], None]
ErrorCallback = Callable[[AdapterErrorEvent], None]
ConnectCallback = Callable[[Optional[BaseException], Any], None]


class LifecycleState(Enum):
    """
    生命周期状态枚举

    状态说明：
    - UNINITIALIZED: 组件已创建但未启动
    - RUNNING: 组件正在运行
    - SHUTDOWN: 组件已关闭，资源已释放
    - ERROR: 组件处于错误状态
    """
    UNINITIALIZED = auto()
    RUNNING = auto()
    SHUTDOWN = auto()
    ERROR = auto()


class ILifecycleComponent(ABC):
    """
    统一生命周期组件接口

    核心方法 (必须实现):
    - start(): 启动组件
    - stop(): 停止组件并释放定时器、订阅等资源

    可选方法 (有默认实现):
    - get_health_status(): 获取组件健康状态

    设计原则:
    - start()/stop() 都应该是幂等的
    - stop() 不应抛出异常
    """

    @abstractmethod
    def start(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass

    def get_health_status(self) -> Optional[Dict[str, Any]]:
        """
        获取组件健康状态

        Returns:
            Optional[Dict[str, Any]]: 健康状态字典，或 None 表示不支持
                如果返回字典，应至少包含：
                - 'healthy' (bool): 组件是否健康
                - 'state' (str): 当前状态名称
                - 'message' (str): 状态描述信息
        """
        return None


class IBusAdapter(ABC):
    """
    总线适配器接口

    由外部驱动实现。所有通知都是异步的：帧回调和错误回调可能在
    适配器自己的线程中触发。
    """

    @abstractmethod
    def start(self) -> bool:
        """打开设备，返回是否连接成功"""
        pass

    @abstractmethod
    def connect(self) -> Any:
        """建立会话，返回设备标识"""
        pass

    @abstractmethod
    def subscribe_frames(self, callback: FrameCallback) -> Callable[[], None]:
        """
        订阅帧事件

        Args:
            callback: 每批帧调用一次，参数为帧序列

        Returns:
            取消订阅函数
        """
        pass

    @abstractmethod
    def on_error(self, callback: ErrorCallback) -> None:
        """注册错误通道回调"""
        pass

    @abstractmethod
    def query_health(self) -> Future:
        """
        异步查询设备健康状态

        Returns:
            Future，结果为 HealthSnapshot 或适配器原始字典
        """
        pass

    def shutdown(self) -> None:
        """关闭设备，默认无操作"""
        pass


class ITelemetrySink(ABC):
    """
    遥测接收端接口

    publish() 为发射即忘语义，不返回送达确认。
    """

    @abstractmethod
    def connect(self, callback: ConnectCallback) -> None:
        """
        连接接收端

        Args:
            callback: callback(error, client)，成功时 error 为 None
        """
        pass

    @abstractmethod
    def publish(self, channel_id: int, value: Any,
                type_hint: Optional[str] = None,
                unit_hint: Optional[str] = None) -> None:
        pass

    def shutdown(self) -> None:
        pass


class FrameSubscription:
    """
    帧订阅句柄

    包装适配器返回的取消订阅函数，保证 unsubscribe() 幂等。

    线程安全性说明:
    - unsubscribe() 可以从任何线程调用，取消订阅函数最多执行一次
    """

    def __init__(self, unsubscribe_fn: Callable[[], None]):
        self._unsubscribe_fn = unsubscribe_fn
        self._lock = threading.Lock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> bool:
        """
        取消订阅

        Returns:
            True: 本次调用执行了取消订阅
            False: 之前已经取消过
        """
        with self._lock:
            if not self._active:
                return False
            self._active = False
        self._unsubscribe_fn()
        return True
