"""
生命周期事件模块

定义请求生命周期事件以及同步广播的事件分发器

事件:
    - RequestSent: 请求发送前
    - ResponseReceived: 收到响应后（总是触发）
    - NotModified: 响应状态为 304
    - ErrorStatus: 响应状态被判定为错误

分发语义:
    - 按注册顺序同步调用监听器
    - 监听器抛出的异常不捕获，直接传播给调用方
    - 每次广播前在锁内对监听器列表做快照，并发注册/注销不会打乱单次广播的顺序
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from condrequest.constants import (
    EVENT_ERROR_STATUS,
    EVENT_NOT_MODIFIED,
    EVENT_REQUEST_SENT,
    EVENT_RESPONSE_RECEIVED,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestSent:
    method: str
    url: str
    content_type: str | None = None


@dataclass(frozen=True)
class ResponseReceived:
    url: str
    status_code: int
    content_type: str | None = None


@dataclass(frozen=True)
class NotModified:
    method: str
    url: str


@dataclass(frozen=True)
class ErrorStatus:
    method: str
    url: str
    status_code: int
    reason: str | None = None
    content_type: str | None = None


LifecycleEvent: TypeAlias = RequestSent | ResponseReceived | NotModified | ErrorStatus
EventHandler: TypeAlias = Callable[[Any], None]

# 事件名称 -> 事件类型
EVENT_TYPES: dict[str, type] = {
    EVENT_REQUEST_SENT: RequestSent,
    EVENT_RESPONSE_RECEIVED: ResponseReceived,
    EVENT_NOT_MODIFIED: NotModified,
    EVENT_ERROR_STATUS: ErrorStatus,
}


class EventDispatcher:
    """
    生命周期事件分发器

    使用显式的监听器列表加广播函数实现观察者模式

    使用示例:
        >>> dispatcher = EventDispatcher()
        >>> dispatcher.register("not_modified", lambda event: print(event.url))
        >>> dispatcher.emit("not_modified", NotModified(method="GET", url="https://api.example.com"))
    """

    def __init__(self):
        self._listeners: dict[str, list[EventHandler]] = {name: [] for name in EVENT_TYPES}
        self._lock = threading.RLock()

    def _check_event_name(self, event_name: str) -> None:
        if event_name not in self._listeners:
            raise ValueError(f"Invalid event name: {event_name}. Must be one of: {list(self._listeners.keys())}")

    def register(self, event_name: str, handler: EventHandler) -> EventHandler:
        """
        注册监听器

        参数:
            event_name: 事件名称
            handler: 监听器，接收事件对象作为唯一参数

        返回:
            传入的监听器本身，便于作为装饰器使用

        异常:
            ValueError: 事件名称不合法
            TypeError: 监听器不可调用
        """
        self._check_event_name(event_name)
        if not callable(handler):
            raise TypeError(f"Listener for {event_name} must be callable")
        with self._lock:
            self._listeners[event_name].append(handler)
        logger.debug(f"Registered listener for {event_name}: {handler!r}")
        return handler

    def unregister(self, event_name: str, handler: EventHandler) -> bool:
        """注销监听器，返回是否找到并移除"""
        self._check_event_name(event_name)
        with self._lock:
            try:
                self._listeners[event_name].remove(handler)
            except ValueError:
                return False
        logger.debug(f"Unregistered listener for {event_name}: {handler!r}")
        return True

    def listeners(self, event_name: str) -> list[EventHandler]:
        """返回监听器列表快照"""
        self._check_event_name(event_name)
        with self._lock:
            return list(self._listeners[event_name])

    def emit(self, event_name: str, event: LifecycleEvent) -> None:
        """按注册顺序同步广播事件，监听器异常直接传播"""
        for handler in self.listeners(event_name):
            handler(event)

    def clear(self) -> None:
        with self._lock:
            for handlers in self._listeners.values():
                handlers.clear()
