# File: src/rcon_core/protocols/correlator.py
"""
RCON 请求/响应关联器 (Correlator)

按包 ID 将入站数据包路由到等待它的请求上。

- 维护 id -> Future 的挂起请求表，发送前登记、收到匹配响应或失败后移除。
- 支持真正的并发请求：响应可以任意顺序到达。
- 无法匹配任何挂起请求的入站包会被丢弃并记录警告，不视为致命错误。
- 服务器以 id = -1 拒绝认证时，该响应被路由给挂起中的 AUTH 请求。
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..exceptions import RconConnectionError, UsageError
from . import constants
from .constants import PacketType
from .packets import Packet, PacketResolvable, resolve_packet

if TYPE_CHECKING:
    from ..network import RconConnection

logger = logging.getLogger(__name__)


def _normalize_timeout(timeout: float | None) -> float | None:
    """0 与 None 均表示不限时；负数视为调用错误。"""
    if timeout is None:
        return None
    if timeout < 0:
        raise UsageError(f"超时不能为负数: {timeout}")
    return timeout or None


@dataclass
class PendingRequest:
    """一个在途请求的关联记录。"""

    id: int
    type: PacketType
    future: asyncio.Future


class RequestCorrelator:
    """在单个连接上为每个请求产出恰好一个响应或一个失败。"""

    def __init__(
        self,
        connection: "RconConnection",
        timeout: float | None = None,
    ) -> None:
        """初始化关联器。

        Args:
            connection: 负责实际写入的连接。
            timeout: 默认的响应等待秒数，None 或 0 表示无限等待。
        """
        self.connection = connection
        self.timeout = _normalize_timeout(timeout)
        self._pending: dict[int, PendingRequest] = {}
        self._last_id = 0
        self._closed_error: Exception | None = None

    @property
    def pending_ids(self) -> list[int]:
        return list(self._pending)

    def next_id(self) -> int:
        """分配一个当前未被占用的正整数请求 ID。

        在 int32 上限处回绕，并跳过握手保留 ID 与在途 ID。
        """
        while True:
            self._last_id = self._last_id + 1 if self._last_id < constants.INT32_MAX else 1
            candidate = self._last_id
            if candidate != constants.AUTH_REQUEST_ID and candidate not in self._pending:
                return candidate

    async def send(
        self, packet: PacketResolvable, timeout: float | None = None
    ) -> Packet:
        """发送一个数据包并等待 ID 匹配的响应。

        Args:
            packet: Packet、映射或已编码的原始帧。
            timeout: 本次请求的等待秒数，缺省使用构造时的默认值，0 表示不限时。

        Returns:
            Packet: 与请求 ID 匹配的响应包。

        Raises:
            UsageError: 相同 ID 的请求仍在途或超时为负数。
            RconConnectionError: 连接已关闭、发送失败或等待超时。
            ProtocolError: 数据包无法编解码。
        """
        wait = self.timeout if timeout is None else _normalize_timeout(timeout)

        if self._closed_error is not None:
            raise RconConnectionError(f"连接已关闭: {self._closed_error}")

        frame = resolve_packet(packet, "encode")
        request = resolve_packet(frame, "decode")

        if request.id in self._pending:
            raise UsageError(f"ID {request.id} 的请求尚未完成")

        future = asyncio.get_running_loop().create_future()
        self._pending[request.id] = PendingRequest(request.id, request.type, future)
        try:
            await self.connection.write(frame)
            return await asyncio.wait_for(future, timeout=wait)
        except asyncio.TimeoutError:
            raise RconConnectionError(
                f"等待响应超时 (id={request.id}, {wait}s)"
            ) from None
        finally:
            self._discard(request.id, future)

    def _discard(self, request_id: int, future: asyncio.Future) -> None:
        """移除挂起记录，并消费掉 Future 上可能残留的异常。"""
        entry = self._pending.get(request_id)
        if entry is not None and entry.future is future:
            del self._pending[request_id]

        if not future.done():
            future.cancel()
        elif not future.cancelled():
            future.exception()

    def dispatch(self, packet: Packet) -> bool:
        """将入站数据包路由到匹配的挂起请求。

        Args:
            packet: 已解码的入站包。

        Returns:
            bool: 成功匹配并交付返回 True；被丢弃返回 False。
        """
        entry = self._pending.get(packet.id)

        if entry is None and packet.id == constants.AUTH_FAILED_ID:
            entry = next(
                (p for p in self._pending.values() if p.type == PacketType.AUTH),
                None,
            )

        if entry is None or entry.future.done():
            logger.warning(
                f"丢弃无法匹配的数据包 (id={packet.id}, type={packet.type.name}, "
                f"{len(packet.body)} chars)"
            )
            return False

        entry.future.set_result(packet)
        return True

    def fail_all(self, error: Exception) -> None:
        """以错误结束所有挂起请求，此后的 send 直接失败。"""
        self._closed_error = error
        pending = list(self._pending.values())
        self._pending.clear()

        for entry in pending:
            if not entry.future.done():
                entry.future.set_exception(
                    error
                    if isinstance(error, RconConnectionError)
                    else RconConnectionError(str(error))
                )
        if pending:
            logger.debug(f"已终止 {len(pending)} 个挂起请求: {error}")
