# tests/conftest.py
import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rcon_core.config import RconConfig
from rcon_core.protocols.constants import PacketType
from rcon_core.protocols.packets import Packet, decode_packet, encode_packet

PASSWORD = "secret"


class FakeRconServer:
    """回环地址上的最小 RCON 服务器。

    默认行为:
    - AUTH: 密码正确时回显请求 ID，错误时回复 id = -1。
    - CMD_EXEC: 回复 RESPONSE，包体为 "echo: <命令>"。

    设置 handler(packet) 可覆盖默认行为：返回 None 走默认逻辑，
    返回列表 (Packet 或 bytes) 则按顺序写回，空列表表示不回复。
    """

    def __init__(self, password: str = PASSWORD) -> None:
        self.password = password
        self.handler = None
        self.received: list[Packet] = []
        self.port: int | None = None
        self._server: asyncio.base_events.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def start(self) -> "FakeRconServer":
        self._server = await asyncio.start_server(self._serve, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]
        return self

    async def stop(self) -> None:
        self.drop_clients()
        self._server.close()
        await self._server.wait_closed()

    def drop_clients(self) -> None:
        """主动断开所有客户端连接。"""
        for writer in self._writers:
            writer.close()
        self._writers.clear()

    def respond(self, packet: Packet) -> list:
        if self.handler is not None:
            result = self.handler(packet)
            if result is not None:
                return result

        if packet.type == PacketType.AUTH:
            reply_id = packet.id if packet.body == self.password else -1
            return [Packet(PacketType.CMD_EXEC, reply_id, "")]
        if packet.type == PacketType.CMD_EXEC:
            return [Packet(PacketType.RESPONSE, packet.id, f"echo: {packet.body}")]
        return []

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self._writers.append(writer)
        try:
            while True:
                head = await reader.readexactly(4)
                size = int.from_bytes(head, "little", signed=True)
                packet = decode_packet(head + await reader.readexactly(size))
                self.received.append(packet)

                for reply in self.respond(packet):
                    writer.write(reply if isinstance(reply, bytes) else encode_packet(reply))
                await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


@pytest_asyncio.fixture
async def rcon_server():
    """[Fixture] 已启动的 FakeRconServer，测试结束后自动关闭。"""
    server = await FakeRconServer().start()
    yield server
    await server.stop()


@pytest.fixture
def valid_config(rcon_server):
    """[Fixture] 指向 rcon_server 的配置对象，超时设得较短以便失败时尽快结束。"""
    return RconConfig(
        host="127.0.0.1",
        port=rcon_server.port,
        password=PASSWORD,
        timeout=2.0,
        connect_timeout=2.0,
    )
