# File: src/rcon_core/protocols/packets.py
"""
RCON 协议封包编解码器 (Packet Codec)

负责 Packet 数据结构与二进制帧 (bytes) 之间的相互转换。
本模块是无状态的 (Stateless)，不持有任何配置、连接或会话信息。

帧结构 (小端序):
    size(4) + id(4) + type(4) + body(N, ASCII) + 0x00 0x00
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Union, overload

from ..exceptions import ProtocolError
from . import constants
from .constants import PacketType


@dataclass(frozen=True)
class Packet:
    """一个 RCON 数据包。

    Attributes:
        type: 包类型标签。
        id: 发送方选择的请求 ID，服务器会在对应响应中原样回显。
        body: ASCII 文本载荷。
    """

    type: PacketType
    id: int
    body: str = ""

    @property
    def size(self) -> int:
        """线上 size 字段的值，即帧总长减去 4。"""
        return len(self.body) + constants.MIN_SIZE_FIELD

    @property
    def wire_length(self) -> int:
        """编码后帧的总字节数。"""
        return len(self.body) + constants.FRAME_OVERHEAD


PacketLike = Union[Packet, Mapping[str, Any]]
PacketResolvable = Union[bytes, bytearray, memoryview, PacketLike]


def _as_packet(data: PacketLike) -> Packet:
    """将 {type, id, body} 映射规整为 Packet。"""
    if isinstance(data, Packet):
        return data
    try:
        return Packet(
            type=PacketType(data["type"]),
            id=int(data["id"]),
            body=str(data.get("body", "")),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise ProtocolError(f"无法识别的数据包结构: {e}") from e


def encode_packet(packet: PacketLike) -> bytes:
    """将数据包编码为线上帧。

    前置条件: 包体必须是不含 NUL 的 ASCII 文本，ID 必须位于 int32 范围内。

    Args:
        packet: Packet 对象，或包含 type/id/body 键的映射。

    Returns:
        bytes: 长度恰为 len(body) + 14 的帧。

    Raises:
        ProtocolError: 前置条件不满足。
    """
    packet = _as_packet(packet)

    if not constants.INT32_MIN <= packet.id <= constants.INT32_MAX:
        raise ProtocolError(f"包 ID 超出 int32 范围: {packet.id}")

    try:
        body = packet.body.encode(constants.BODY_ENCODING)
    except UnicodeEncodeError as e:
        raise ProtocolError(f"包体包含非 ASCII 字符: {e}") from e

    if b"\x00" in body:
        raise ProtocolError("包体不能包含 NUL 字节")

    total = len(body) + constants.FRAME_OVERHEAD
    header = constants.HEADER.pack(
        total - constants.SIZE_FIELD_LEN, packet.id, int(packet.type)
    )
    return header + body + constants.TERMINATOR


def decode_packet(data: bytes | bytearray | memoryview) -> Packet:
    """将一个完整的线上帧解码为 Packet。

    Args:
        data: 恰好包含一个帧的字节序列。

    Returns:
        Packet: 解码结果。

    Raises:
        ProtocolError: 帧长不足 14 字节、size 字段与帧长不符，或包类型未知。
    """
    data = bytes(data)
    if len(data) < constants.MIN_FRAME_LEN:
        raise ProtocolError(
            f"帧长度不足: {len(data)} 字节 (最少 {constants.MIN_FRAME_LEN})"
        )

    size, packet_id, type_tag = constants.HEADER.unpack_from(data, constants.OFFSET_SIZE)

    if size != len(data) - constants.SIZE_FIELD_LEN:
        raise ProtocolError(
            f"size 字段 ({size}) 与帧长 ({len(data)}) 不一致"
        )

    try:
        packet_type = PacketType(type_tag)
    except ValueError:
        raise ProtocolError(f"未知的包类型: {type_tag}") from None

    body = data[constants.OFFSET_BODY : len(data) - 2].decode(
        constants.BODY_ENCODING, errors="replace"
    )
    return Packet(type=packet_type, id=packet_id, body=body)


@overload
def resolve_packet(packet: PacketResolvable, action: Literal["encode"]) -> bytes: ...


@overload
def resolve_packet(packet: PacketResolvable, action: Literal["decode"]) -> Packet: ...


def resolve_packet(
    packet: PacketResolvable, action: Literal["encode", "decode"]
) -> bytes | Packet:
    """在 Packet 与原始帧之间按需规整。

    Args:
        packet: Packet、{type, id, body} 映射或原始帧。
        action: "encode" 返回 bytes，"decode" 返回 Packet。

    Returns:
        bytes | Packet: 规整后的形式。

    Raises:
        ProtocolError: 编解码失败。
        ValueError: action 非法。
    """
    is_raw = isinstance(packet, (bytes, bytearray, memoryview))
    if action == "encode":
        return bytes(packet) if is_raw else encode_packet(packet)
    if action == "decode":
        return decode_packet(packet) if is_raw else _as_packet(packet)
    raise ValueError(f"未知的 action: {action}")
