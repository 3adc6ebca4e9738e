# src/rcon_core/protocols/constants.py
"""
RCON 协议层 - 常量定义

本模块定义了所有协议相关的魔法数字、偏移量和固定值。
"""

import struct
from enum import IntEnum

# =========================================================================
# 1. 包类型 (Packet Type)
# =========================================================================


class PacketType(IntEnum):
    """包类型标签 (位于帧偏移 8 处的 int32)"""

    RESPONSE = 0
    CMD_EXEC = 2
    AUTH = 3
    AUTH_FAILED = -1


# =========================================================================
# 2. 帧结构 (Frame Layout)
# =========================================================================

# 所有整数字段均为小端序有符号 int32
INT32 = struct.Struct("<i")
HEADER = struct.Struct("<iii")  # size, id, type

SIZE_FIELD_LEN = 4
OFFSET_SIZE = 0
OFFSET_ID = 4
OFFSET_TYPE = 8
OFFSET_BODY = 12

TERMINATOR = b"\x00\x00"

# 帧总长 = 包体长度 + 14 (size 4 + id 4 + type 4 + 终止符 2)
FRAME_OVERHEAD = 14
MIN_FRAME_LEN = FRAME_OVERHEAD
# size 字段 = 帧总长 - 4
MIN_SIZE_FIELD = FRAME_OVERHEAD - SIZE_FIELD_LEN
# 单帧上限，超过视为损坏的长度字段
MAX_SIZE_FIELD = 1024 * 1024

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# =========================================================================
# 3. 会话常量
# =========================================================================

DEFAULT_PORT = 25575

# 握手使用的固定请求 ID；服务器以 AUTH_FAILED (-1) 作为 ID 表示拒绝
AUTH_REQUEST_ID = 10
AUTH_FAILED_ID = int(PacketType.AUTH_FAILED)

BODY_ENCODING = "ascii"
