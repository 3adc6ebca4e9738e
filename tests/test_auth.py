# tests/test_auth.py
"""
测试认证握手状态机 (Auth Handshake)。
覆盖 src/rcon_core/protocols/auth.py
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from rcon_core.exceptions import AuthenticationError, RconConnectionError, UsageError
from rcon_core.protocols import constants
from rcon_core.protocols.auth import (
    AuthHandshake,
    HandshakeState,
    build_auth_packet,
    is_auth_rejected,
)
from rcon_core.protocols.constants import PacketType
from rcon_core.protocols.packets import Packet


@pytest.fixture
def correlator():
    correlator = MagicMock()
    correlator.send = AsyncMock()
    return correlator


def test_build_auth_packet():
    packet = build_auth_packet("hunter2")
    assert packet == Packet(PacketType.AUTH, constants.AUTH_REQUEST_ID, "hunter2")
    assert build_auth_packet("pw", request_id=77).id == 77


@pytest.mark.parametrize(
    "reply_id, rejected",
    [(-1, True), (10, False), (0, False), (12345, False)],
)
def test_is_auth_rejected(reply_id, rejected):
    assert is_auth_rejected(Packet(PacketType.CMD_EXEC, reply_id, "")) is rejected


@pytest.mark.asyncio
@pytest.mark.parametrize("reply_id", [10, 0, 999])
async def test_handshake_success(correlator, reply_id):
    """任何非 -1 的响应 ID 都视为认证成功"""
    reply = Packet(PacketType.CMD_EXEC, reply_id, "")
    correlator.send.return_value = reply

    handshake = AuthHandshake(correlator, "hunter2")
    assert await handshake.run() == reply

    assert handshake.authenticated is True
    assert handshake.state == HandshakeState.SUCCEEDED
    correlator.send.assert_awaited_once_with(
        Packet(PacketType.AUTH, 10, "hunter2"), timeout=None
    )


@pytest.mark.asyncio
async def test_handshake_rejected(correlator):
    correlator.send.return_value = Packet(PacketType.CMD_EXEC, -1, "")

    handshake = AuthHandshake(correlator, "wrong")
    with pytest.raises(AuthenticationError) as exc:
        await handshake.run()

    assert exc.value.request_id == constants.AUTH_REQUEST_ID
    assert handshake.authenticated is False
    assert handshake.state == HandshakeState.FAILED


@pytest.mark.asyncio
async def test_handshake_connection_lost(correlator):
    correlator.send.side_effect = RconConnectionError("连接已关闭")

    handshake = AuthHandshake(correlator, "hunter2")
    with pytest.raises(RconConnectionError):
        await handshake.run()
    assert handshake.state == HandshakeState.FAILED


@pytest.mark.asyncio
async def test_handshake_runs_only_once(correlator):
    correlator.send.return_value = Packet(PacketType.CMD_EXEC, 10, "")

    handshake = AuthHandshake(correlator, "hunter2")
    await handshake.run()

    with pytest.raises(UsageError):
        await handshake.run()
    assert correlator.send.await_count == 1
