# File: src/rcon_core/events.py
"""
RCON 核心库 - 事件分发 (Events)

Connection 与 Client 共用的监听器注册表。
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

# 回调函数类型别名：支持同步或异步函数
Listener = Callable[..., Any | Awaitable[Any]]


class EventEmitter:
    """按事件名分组的监听器注册表。

    同步回调在 emit 时立即调用；协程函数则被包装为 Task 调度执行。
    回调抛出的异常只记录日志，不会影响发出事件的一方。
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._once: set[tuple[str, Listener]] = set()
        self._tasks: set[asyncio.Task] = set()

    def on(self, event: str, callback: Listener) -> None:
        """注册事件监听器。重复注册同一回调无效。"""
        callbacks = self._listeners.setdefault(event, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def once(self, event: str, callback: Listener) -> None:
        """注册只触发一次的监听器。"""
        self.on(event, callback)
        self._once.add((event, callback))

    def off(self, event: str, callback: Listener) -> None:
        """移除事件监听器。"""
        callbacks = self._listeners.get(event)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)
        self._once.discard((event, callback))

    def remove_all_listeners(self, event: str | None = None) -> None:
        """移除指定事件 (或全部事件) 的所有监听器。"""
        if event is None:
            self._listeners.clear()
            self._once.clear()
            return
        self._listeners.pop(event, None)
        self._once = {item for item in self._once if item[0] != event}

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> bool:
        """触发事件。

        Args:
            event: 事件名。
            *args: 传递给回调的参数。

        Returns:
            bool: 存在监听器时返回 True。
        """
        callbacks = list(self._listeners.get(event, ()))
        if not callbacks:
            return False

        for callback in callbacks:
            if (event, callback) in self._once:
                self.off(event, callback)
            try:
                if inspect.iscoroutinefunction(callback):
                    task = asyncio.create_task(callback(*args))
                    self._tasks.add(task)
                    task.add_done_callback(self._tasks.discard)
                else:
                    callback(*args)
            except RuntimeError as e:
                # 事件循环未运行时无法调度协程回调
                logger.warning(f"无法调度 '{event}' 回调: {e}")
            except Exception as e:
                logger.error(f"'{event}' 回调执行异常: {e}")
        return True
