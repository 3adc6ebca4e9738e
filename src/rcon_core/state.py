# File: src/rcon_core/state.py
"""
RCON 核心库 - 状态模块

负责定义连接生命周期的状态枚举，以及客户端的易变会话状态。
本模块不包含业务逻辑，仅作为数据容器供 Client 和 Connection 共享读写。
"""

from dataclasses import dataclass
from enum import Enum, auto


class ConnectionStatus(Enum):
    """连接的生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> CONNECTING -> CONNECTED -> CLOSED
                        |                        ^
                        +------------------------+

    CLOSED 为终态，重新登录必须创建新的连接对象。
    """

    DISCONNECTED = auto()
    """初始状态，连接对象已实例化但未发起连接。"""

    CONNECTING = auto()
    """正在建立 TCP 连接。"""

    CONNECTED = auto()
    """传输层已建立，可以收发数据包。"""

    CLOSED = auto()
    """已关闭。可能是主动注销、对端断开或发生了传输错误。"""


@dataclass
class RconState:
    """存储 RCON 会话的易变状态数据。

    该对象是非持久化的。每次重新登录时由客户端重置。

    Attributes:
        status: 当前连接的生命周期状态。
        authenticated: 握手是否已成功完成。
        last_error: 最近一次发生的错误信息描述，用于 UI 显示。
    """

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    authenticated: bool = False
    last_error: str = ""

    @property
    def is_ready(self) -> bool:
        """判断当前是否可以发送命令 (已认证且连接存活)。

        Returns:
            bool: 可用时返回 True。
        """
        return self.authenticated and self.status == ConnectionStatus.CONNECTED
