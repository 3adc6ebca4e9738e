# File: src/rcon_core/core.py
"""
RCON 客户端 (Core Engine)

职责：
1. 资源组装：Config + State + Connection + Correlator。
2. 生命周期：Connect -> Auth Handshake -> Ready -> Close。
3. 事件转发：将连接层的 raw / packet / error / close 转发给上层监听器。
"""

import asyncio
import logging
from dataclasses import replace

from .config import RconConfig
from .events import EventEmitter, Listener
from .exceptions import AuthenticationError, RconConnectionError, UsageError
from .network import RconConnection
from .protocols.auth import AuthHandshake
from .protocols.constants import PacketType
from .protocols.correlator import RequestCorrelator
from .protocols.packets import Packet, PacketResolvable
from .state import ConnectionStatus, RconState

logger = logging.getLogger(__name__)


class RconClient(EventEmitter):
    """RCON 客户端 (Async)。

    事件:
        status(status: ConnectionStatus, msg: str): 生命周期状态变化。
        raw(frame: bytes): 收到原始帧。
        packet(packet: Packet): 收到已解码的数据包。
        error(exc: RconError): 连接因错误终止。
        ready(): 认证成功，每次登录最多一次。
        close(): 当前连接已关闭。
    """

    def __init__(
        self,
        config: RconConfig,
        status_callback: Listener | None = None,
    ) -> None:
        """初始化客户端。

        Args:
            config: 全局配置对象。
            status_callback: 可选的状态回调，等价于 on("status", ...)。
        """
        super().__init__()
        self.config = config
        self._state = RconState()

        self.connection: RconConnection | None = None
        self.correlator: RequestCorrelator | None = None
        self._login_lock = asyncio.Lock()

        if status_callback:
            self.on("status", status_callback)

    @property
    def host(self) -> str:
        return self.config.host

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def state(self) -> RconState:
        """获取当前会话状态的只读副本。"""
        return replace(self._state)

    @property
    def authenticated(self) -> bool:
        return self._state.authenticated

    @property
    def ready(self) -> bool:
        """已认证且连接存活。"""
        return (
            self._state.authenticated
            and self.connection is not None
            and self.connection.is_alive
        )

    async def login(self) -> "RconClient":
        """建立连接并执行认证握手。

        每次登录都会创建全新的连接对象；旧连接一旦关闭便不再复用。

        Returns:
            RconClient: 客户端自身，便于链式调用。

        Raises:
            UsageError: 已认证或已有登录正在进行。
            AuthenticationError: 密码被拒绝。
            RconConnectionError: 连接失败、中断或握手超时。
        """
        if self.ready:
            raise UsageError("客户端已认证，请勿重复登录")
        if self._login_lock.locked():
            raise UsageError("登录正在进行中")

        async with self._login_lock:
            if self.connection is not None:
                self.connection.destroy()

            self._state = RconState()

            connection = RconConnection(
                self.config.host,
                self.config.port,
                connect_timeout=self.config.connect_timeout,
            )
            correlator = RequestCorrelator(connection, timeout=self.config.timeout)
            self.connection, self.correlator = connection, correlator
            self._bind(connection, correlator)

            self._update_status(
                ConnectionStatus.CONNECTING,
                f"正在连接 {self.config.host}:{self.config.port} ...",
            )
            await connection.open()
            self._update_status(ConnectionStatus.CONNECTED, "连接已建立，开始认证")

            try:
                await AuthHandshake(correlator, self.config.password).run()
            except Exception as e:
                self._state.last_error = str(e)
                if isinstance(e, AuthenticationError):
                    logger.error(f"认证被拒绝: {e}")
                else:
                    logger.error(f"认证握手未完成: {e}")
                connection.destroy()
                raise

            self._state.authenticated = True
            logger.info(f"已登录 {self.config.host}:{self.config.port}")
            self.emit("ready")
            return self

    async def send_command(self, command: str, timeout: float | None = None) -> Packet:
        """发送一条命令并等待其响应。

        Args:
            command: 命令文本 (ASCII)。
            timeout: 本次请求的等待秒数，缺省使用配置中的 timeout。

        Returns:
            Packet: 服务器返回的响应包。

        Raises:
            UsageError: 客户端尚未认证。
            RconConnectionError: 连接中断或超时。
            ProtocolError: 命令文本无法编码。
        """
        if not self.ready or self.correlator is None:
            raise UsageError("客户端尚未认证，无法发送命令")

        packet = Packet(
            type=PacketType.CMD_EXEC, id=self.correlator.next_id(), body=command
        )
        return await self.correlator.send(packet, timeout=timeout)

    async def send_packet(
        self, packet: PacketResolvable, timeout: float | None = None
    ) -> Packet:
        """发送任意数据包 (Packet、映射或原始帧) 并等待 ID 匹配的响应。

        Raises:
            UsageError: 尚未登录过。
            RconConnectionError: 连接已关闭、中断或超时。
        """
        if self.correlator is None:
            raise UsageError("尚未建立连接")
        return await self.correlator.send(packet, timeout=timeout)

    def destroy(self) -> None:
        """立即关闭当前连接 (同步)。"""
        if self.connection is not None:
            self.connection.destroy()
        self._state.authenticated = False

    async def close(self) -> None:
        """关闭当前连接，并等待传输层完全释放。"""
        if self.connection is not None:
            await self.connection.close()
        self._state.authenticated = False

    async def __aenter__(self) -> "RconClient":
        return await self.login()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # 内部实现
    # =========================================================================

    def _bind(self, connection: RconConnection, correlator: RequestCorrelator) -> None:
        """将连接事件接入关联器与客户端事件。

        回调只对当前连接生效，已替换的旧连接上的迟到事件会被忽略。
        """
        errors: list[Exception] = []

        def _is_current() -> bool:
            return self.connection is connection

        def on_raw(frame: bytes) -> None:
            if _is_current():
                self.emit("raw", frame)

        def on_packet(packet: Packet) -> None:
            correlator.dispatch(packet)
            if _is_current():
                self.emit("packet", packet)

        def on_error(error: Exception) -> None:
            errors.append(error)
            if not _is_current():
                return
            self._state.last_error = str(error)
            self.emit("error", error)

        def on_close() -> None:
            correlator.fail_all(
                errors[-1] if errors else RconConnectionError("连接已关闭")
            )
            if not _is_current():
                return
            self._state.authenticated = False
            self._update_status(ConnectionStatus.CLOSED, "连接已关闭")
            self.emit("close")

        connection.on("raw", on_raw)
        connection.on("packet", on_packet)
        connection.on("error", on_error)
        connection.on("close", on_close)

    def _update_status(self, status: ConnectionStatus, msg: str) -> None:
        """更新内部状态并通知 status 监听器。"""
        self._state.status = status
        logger.info(f"[{status.name}] {msg}")
        self.emit("status", status, msg)

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self.config.host}:{self.config.port} "
            f"{self._state.status.name} authenticated={self._state.authenticated}>"
        )
