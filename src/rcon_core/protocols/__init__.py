# src/rcon_core/protocols/__init__.py
"""
RCON 协议层 (Protocol Layer)

- packets: 数据包的纯粹编码 (Encode) 与解码 (Decode)，不包含任何网络 I/O。
- correlator: 按包 ID 关联请求与响应。
- auth: 认证握手状态机。
"""

from . import constants
from .auth import AuthHandshake, HandshakeState, build_auth_packet, is_auth_rejected
from .constants import PacketType
from .correlator import PendingRequest, RequestCorrelator
from .packets import Packet, decode_packet, encode_packet, resolve_packet

# 公共 API
__all__ = [
    "constants",
    "PacketType",
    "Packet",
    "encode_packet",
    "decode_packet",
    "resolve_packet",
    "RequestCorrelator",
    "PendingRequest",
    "AuthHandshake",
    "HandshakeState",
    "build_auth_packet",
    "is_auth_rejected",
]
