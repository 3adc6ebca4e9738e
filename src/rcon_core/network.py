# src/rcon_core/network.py
"""
RCON 核心库 - 网络模块 (Network) [Asyncio Edition]

封装 TCP 流连接的建立、分帧读取、串行写入与关闭逻辑。
向上层提供 "raw" (原始帧) 与 "packet" (已解码 Packet) 两种事件，
并保证每个连接生命周期内只发出一次 "close" 通知。
"""

import asyncio
import logging

from .events import EventEmitter
from .exceptions import ProtocolError, RconConnectionError, UsageError
from .protocols import constants
from .protocols.packets import decode_packet
from .state import ConnectionStatus

logger = logging.getLogger(__name__)


def _current_task() -> asyncio.Task | None:
    """当前正在运行的 Task；不在事件循环中调用时返回 None。"""
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class RconConnection(EventEmitter):
    """单个 RCON TCP 连接。

    事件:
        raw(frame: bytes): 收到一个完整帧。
        packet(packet: Packet): 帧解码后的数据包。
        error(exc: RconError): 连接因错误终止 (紧随其后是 close)。
        close(): 连接进入 CLOSED 状态，每个实例最多一次。

    连接对象不可复用：进入 CLOSED 后必须新建实例。
    """

    def __init__(
        self,
        host: str,
        port: int = constants.DEFAULT_PORT,
        connect_timeout: float | None = None,
    ) -> None:
        super().__init__()
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.status = ConnectionStatus.DISCONNECTED

        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._read_task: asyncio.Task | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_alive(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED

    async def open(self) -> None:
        """建立 TCP 连接并启动读取循环。

        Raises:
            UsageError: 连接对象已被使用过。
            RconConnectionError: 连接失败或超时。
        """
        if self.status != ConnectionStatus.DISCONNECTED:
            raise UsageError(f"连接对象不可复用 (当前状态: {self.status.name})")

        self.status = ConnectionStatus.CONNECTING
        logger.debug(f"正在连接 {self.host}:{self.port} ...")

        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError:
            err = RconConnectionError(
                f"连接超时 {self.host}:{self.port} ({self.connect_timeout}s)"
            )
            self.destroy(err)
            raise err from None
        except OSError as e:
            err = RconConnectionError(f"连接失败 {self.host}:{self.port}: {e}")
            self.destroy(err)
            raise err from e

        if self.status != ConnectionStatus.CONNECTING:
            # 连接建立期间被 destroy()
            self._writer.close()
            raise RconConnectionError("连接在建立过程中被关闭")

        self.status = ConnectionStatus.CONNECTED
        self._read_task = asyncio.create_task(
            self._read_loop(), name=f"RconReadLoop-{self.host}:{self.port}"
        )
        logger.info(f"已连接 {self.host}:{self.port}")

    async def write(self, frame: bytes) -> None:
        """写入一个完整帧。多个写入者之间通过锁串行化，避免帧交错。

        Raises:
            RconConnectionError: 连接不可用或写入失败。
        """
        async with self._write_lock:
            if not self.is_alive or self._writer is None:
                raise RconConnectionError(
                    f"连接不可用 (当前状态: {self.status.name})"
                )
            try:
                self._writer.write(frame)
                await self._writer.drain()
            except (OSError, RuntimeError) as e:
                err = RconConnectionError(f"发送失败: {e}")
                self.destroy(err)
                raise err from e
        logger.debug(f"-> {len(frame)} bytes")

    async def _read_frame(self) -> bytes:
        """按长度前缀读取一个完整帧。"""
        assert self._reader is not None
        head = await self._reader.readexactly(constants.SIZE_FIELD_LEN)
        (size,) = constants.INT32.unpack(head)

        if not constants.MIN_SIZE_FIELD <= size <= constants.MAX_SIZE_FIELD:
            raise ProtocolError(f"非法的 size 字段: {size}")

        return head + await self._reader.readexactly(size)

    async def _read_loop(self) -> None:
        """读取并分发帧，直到连接终止。"""
        error: Exception | None = None
        try:
            while self.is_alive:
                frame = await self._read_frame()
                packet = decode_packet(frame)
                logger.debug(
                    f"<- {len(frame)} bytes (id={packet.id}, type={packet.type.name})"
                )
                self.emit("raw", frame)
                self.emit("packet", packet)

        except asyncio.CancelledError:
            raise
        except asyncio.IncompleteReadError as e:
            if e.partial:
                error = RconConnectionError(
                    f"连接在帧中途被对端关闭 ({len(e.partial)} bytes 未完成)"
                )
            else:
                logger.info("连接已被对端关闭")
        except ProtocolError as e:
            logger.error(f"收到损坏的帧: {e}")
            error = e
        except OSError as e:
            error = RconConnectionError(f"接收错误: {e}")

        self.destroy(error)

    def destroy(self, error: Exception | None = None) -> None:
        """终止连接。重复调用无效。

        释放传输层与全部监听器，并发出唯一一次 close 通知；
        若由错误触发，则先发出 error 通知。

        Args:
            error: 导致终止的错误，主动关闭时为 None。
        """
        if self.status in (ConnectionStatus.CLOSED, ConnectionStatus.DISCONNECTED):
            return

        self.status = ConnectionStatus.CLOSED

        if self._read_task is not None and self._read_task is not _current_task():
            self._read_task.cancel()

        if self._writer is not None:
            try:
                self._writer.close()
            except RuntimeError as e:
                # 事件循环已关闭
                logger.debug(f"关闭 Transport 时出现异常: {e}")

        if error is not None:
            logger.warning(f"连接因错误终止: {error}")
            self.emit("error", error)

        logger.info(f"连接已关闭 {self.host}:{self.port}")
        self.emit("close")
        self.remove_all_listeners()

    async def close(self) -> None:
        """主动关闭连接，并等待传输层完全释放。"""
        self.destroy()

        if self._writer is not None:
            try:
                await self._writer.wait_closed()
            except (OSError, RuntimeError):
                pass
            self._writer = None
            self._reader = None

        if self._read_task is not None and self._read_task is not _current_task():
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass
            self._read_task = None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.host}:{self.port} {self.status.name}>"
