# src/rcon_core/protocols/auth.py
"""
RCON 认证握手 (Auth Handshake)

连接建立后执行一次：发送 AUTH 包并等待响应。
响应 ID 为 AUTH_FAILED (-1) 表示拒绝，其余任何 ID 均视为成功。
握手本身不做任何重试，重试策略由调用方决定。
"""

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

from ..exceptions import AuthenticationError, UsageError
from . import constants
from .constants import PacketType
from .packets import Packet

if TYPE_CHECKING:
    from .correlator import RequestCorrelator

logger = logging.getLogger(__name__)


class HandshakeState(Enum):
    """握手状态。SUCCEEDED 与 FAILED 为终态。"""

    PENDING = auto()
    SENT = auto()
    SUCCEEDED = auto()
    FAILED = auto()


def build_auth_packet(password: str, request_id: int = constants.AUTH_REQUEST_ID) -> Packet:
    """构建 AUTH 请求包。

    Args:
        password: RCON 密码，作为包体发送。
        request_id: 请求 ID，默认为约定的 10。

    Returns:
        Packet: AUTH 请求包。
    """
    return Packet(type=PacketType.AUTH, id=request_id, body=password)


def is_auth_rejected(response: Packet) -> bool:
    """判断 AUTH 响应是否为拒绝 (id == -1)。"""
    return response.id == constants.AUTH_FAILED_ID


class AuthHandshake:
    """一次性的认证状态机。"""

    def __init__(
        self,
        correlator: "RequestCorrelator",
        password: str,
        request_id: int = constants.AUTH_REQUEST_ID,
    ) -> None:
        self.correlator = correlator
        self.password = password
        self.request_id = request_id
        self.state = HandshakeState.PENDING

    @property
    def authenticated(self) -> bool:
        return self.state == HandshakeState.SUCCEEDED

    async def run(self, timeout: float | None = None) -> Packet:
        """执行握手。

        Args:
            timeout: 等待 AUTH 响应的秒数，缺省使用关联器的默认值。

        Returns:
            Packet: 服务器的 AUTH 响应。

        Raises:
            UsageError: 握手已经执行过。
            AuthenticationError: 服务器拒绝认证。
            RconConnectionError: 等待期间连接中断或超时。
        """
        if self.state != HandshakeState.PENDING:
            raise UsageError(f"握手只能执行一次 (当前状态: {self.state.name})")

        self.state = HandshakeState.SENT
        logger.debug(f"发送 AUTH 请求 (id={self.request_id})")

        try:
            response = await self.correlator.send(
                build_auth_packet(self.password, self.request_id), timeout=timeout
            )
        except Exception:
            self.state = HandshakeState.FAILED
            raise

        if is_auth_rejected(response):
            self.state = HandshakeState.FAILED
            raise AuthenticationError("认证失败: 密码错误", self.request_id)

        self.state = HandshakeState.SUCCEEDED
        logger.info("认证成功")
        return response
