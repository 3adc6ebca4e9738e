# src/rcon_core/__init__.py
"""
RCON-Core v1.0.0
基于 asyncio 的 RCON (Remote Console) 协议客户端核心库。
"""

# 暴露核心配置
from .config import (
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露客户端、连接与状态
from .core import RconClient
from .network import RconConnection

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    AuthenticationError,
    ConfigError,
    ProtocolError,
    RconConnectionError,
    RconError,
    UsageError,
)
from .protocols import Packet, PacketType, decode_packet, encode_packet, resolve_packet
from .state import ConnectionStatus, RconState

__version__ = "1.0.0"

__all__ = [
    "RconClient",
    "RconConnection",
    "RconConfig",
    "RconState",
    "ConnectionStatus",
    "Packet",
    "PacketType",
    "encode_packet",
    "decode_packet",
    "resolve_packet",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "RconError",
    "ConfigError",
    "RconConnectionError",
    "AuthenticationError",
    "ProtocolError",
    "UsageError",
]
