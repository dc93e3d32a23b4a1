# File: src/rcon_core/protocols/packet.py
"""
Source RCON 封包编解码器 (Packet Codec)

负责 Packet 结构与二进制字节流之间的相互转换、响应分类与结构校验。
本模块是无状态的 (Stateless)，不包含任何 socket 操作。

注意: 协议的 Type 字段并不是线路上的判别联合。同一个整数在请求和响应中
含义不同，且服务器可能返回文档之外的类型码。因此分类是宽松的：
无法识别时返回 UNKNOWN 而不是抛出异常，由会话层决定重试或报错。
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum

from ..exceptions import (
    IncompleteFrame,
    LengthTooLarge,
    LengthTooSmall,
    PayloadLengthMismatch,
    PayloadTooLarge,
    PayloadTooSmall,
    TypeMismatch,
)
from . import constants
from .constants import RequestLimits, RequestType, ResponseLimits, ResponseType

logger = logging.getLogger(__name__)


class Direction(Enum):
    """封包方向。不在线路上传输，由构造函数决定，用于消解 Type 码的歧义。"""

    REQUEST = "request"
    RESPONSE = "response"


class ResponseKind(Enum):
    """解码后封包的语义分类 (封闭枚举)。"""

    LOGIN = "login"
    COMMAND = "command"
    INVALID = "invalid"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PacketMetadata:
    """classify() 的结果。

    Attributes:
        kind: 语义分类。
        payload_max: 该方向允许的最大 Payload 字节数。
    """

    kind: ResponseKind
    payload_max: int


@dataclass(frozen=True)
class Packet:
    """单个协议帧。

    Attributes:
        declared_length: 帧头中的 Length 字段 (不含自身 4 字节)。
        request_id: 关联请求与响应的 ID，-1 表示认证失败。
        kind_code: 原始类型码，含义取决于 direction。
        body: Payload 原始字节 (不含终止符)。
        direction: 请求或响应。
        raw: 请求的完整编码结果，或响应实际消费的字节区间。
    """

    declared_length: int
    request_id: int
    kind_code: int
    body: bytes
    direction: Direction
    raw: bytes = b""

    @property
    def payload(self) -> str:
        """Payload 文本。服务器不保证 UTF-8，无法解码的字节会被替换。"""
        return self.body.decode("utf-8", errors="replace")

    @property
    def metadata(self) -> PacketMetadata:
        return classify(self)

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self.direction.value} "
            f"id={self.request_id} type={self.kind_code} {len(self.body)}B>"
        )


# =========================================================================
# Request ID
# =========================================================================


def _fresh_id() -> int:
    """基于单调时钟生成一个新的 ID，截断为 5 位十进制，范围 [1, 99999]。"""
    return (time.monotonic_ns() // 100000) % (constants.RequestId.FRESH_RANGE - 1) + 1


def next_id(seed: int) -> int:
    """根据上一个 ID 生成下一个 Request ID。

    该 ID 仅用于关联请求与响应，不是安全令牌。

    Args:
        seed: 上一次被服务器确认的 ID。

    Returns:
        int: seed <= 0 或 seed + 1 超出 31 位正整数范围时返回新生成的 ID，
            否则返回 seed + 1。
    """
    if seed <= 0 or seed >= constants.RequestId.MAX:
        return _fresh_id()
    return seed + 1


# =========================================================================
# 分类与校验
# =========================================================================


def classify(packet: Packet) -> PacketMetadata:
    """根据方向解析类型码的语义。

    响应方向: 2 -> LOGIN, 0 -> COMMAND, request_id == -1 -> INVALID (优先于类型码)，
    其余 -> UNKNOWN。请求方向: 3 -> LOGIN, 2 -> COMMAND, 其余 -> UNKNOWN。

    Args:
        packet: 已构建或已解码的封包。

    Returns:
        PacketMetadata: 分类结果与该方向的 Payload 上限。
    """
    if packet.direction is Direction.REQUEST:
        kinds = {
            RequestType.LOGIN: ResponseKind.LOGIN,
            RequestType.COMMAND: ResponseKind.COMMAND,
        }
        kind = kinds.get(packet.kind_code, ResponseKind.UNKNOWN)
        return PacketMetadata(kind, RequestLimits.PAYLOAD_MAX)

    if packet.request_id == constants.RequestId.INVALID:
        return PacketMetadata(ResponseKind.INVALID, ResponseLimits.PAYLOAD_MAX)

    kinds = {
        ResponseType.LOGIN: ResponseKind.LOGIN,
        ResponseType.COMMAND: ResponseKind.COMMAND,
    }
    kind = kinds.get(packet.kind_code, ResponseKind.UNKNOWN)
    return PacketMetadata(kind, ResponseLimits.PAYLOAD_MAX)


def verify(packet: Packet, expected_code: int) -> None:
    """校验封包的结构合法性。

    响应只做分类不做严格类型检查，因为不同服务器的实现与文档存在偏差。

    Args:
        packet: 待校验的封包。
        expected_code: 期望的类型码 (仅对请求生效)。

    Raises:
        LengthTooSmall: declared_length < 10 (请求方向为子类 PayloadTooSmall)。
        LengthTooLarge: declared_length > 10 + payload_max。
        TypeMismatch: 请求的类型码与 expected_code 不一致。
        PayloadLengthMismatch: 声明长度与实际 Payload 长度不一致。
    """
    payload_max = classify(packet).payload_max

    if packet.declared_length < constants.LENGTH_MIN:
        if packet.direction is Direction.REQUEST:
            raise PayloadTooSmall(
                f"请求帧长度过小: {packet.declared_length} < {constants.LENGTH_MIN}"
            )
        raise LengthTooSmall(
            f"帧长度过小: {packet.declared_length} < {constants.LENGTH_MIN}"
        )

    if packet.declared_length > constants.LENGTH_MIN + payload_max:
        raise LengthTooLarge(
            f"帧长度过大: {packet.declared_length} > {constants.LENGTH_MIN + payload_max}"
        )

    if packet.direction is Direction.REQUEST and packet.kind_code != expected_code:
        raise TypeMismatch(f"类型码不匹配: {packet.kind_code} != {expected_code}")

    if len(packet.body) != packet.declared_length - constants.LENGTH_MIN:
        raise PayloadLengthMismatch(
            f"Payload 长度不匹配: 声明 {packet.declared_length - constants.LENGTH_MIN}, "
            f"实际 {len(packet.body)}"
        )


# =========================================================================
# 编码 (Request)
# =========================================================================


def encode(packet: Packet) -> bytes:
    """将封包序列化为线路字节。

    结构: Length(4B) + RequestID(4B) + Type(4B) + Payload + 0x00 + 0x00
    """
    header = constants.HEADER.pack(
        packet.declared_length, packet.request_id, packet.kind_code
    )
    return b"".join([header, packet.body, constants.TRAILER])


def _build_request(request_id: int, code: int, text: str) -> Packet:
    body = text.encode("utf-8")

    if len(body) > RequestLimits.PAYLOAD_MAX:
        raise PayloadTooLarge(
            f"Payload 过大: {len(body)} 字节 (上限 {RequestLimits.PAYLOAD_MAX})"
        )

    packet = Packet(
        declared_length=constants.LENGTH_MIN + len(body),
        request_id=request_id,
        kind_code=code,
        body=body,
        direction=Direction.REQUEST,
    )
    verify(packet, code)

    packet = replace(packet, raw=encode(packet))
    logger.debug("build_request: id=%d type=%d size=%d", request_id, code, len(body))
    return packet


def build_login_request(password: str) -> Packet:
    """构建登录请求包 (Type 3)。

    Args:
        password: RCON 密码。

    Returns:
        Packet: 构建好的请求包，ID 为新生成的 ID。

    Raises:
        PayloadTooLarge: 密码编码后超过 1024 字节。
    """
    return _build_request(next_id(0), RequestType.LOGIN, password)


def build_command_request(request_id: int, body: str) -> Packet:
    """构建命令请求包 (Type 2)。

    Args:
        request_id: 上一次被确认的 ID，实际使用 next_id(request_id)。
        body: 命令文本。

    Returns:
        Packet: 构建好的请求包。

    Raises:
        PayloadTooLarge: 命令编码后超过 1024 字节。
    """
    return _build_request(next_id(request_id), RequestType.COMMAND, body)


# =========================================================================
# 解码 (Response)
# =========================================================================


def _decode_response(data: bytes, expected_code: int) -> tuple[Packet, bytes]:
    if len(data) < constants.HEADER_SIZE:
        raise IncompleteFrame(
            f"数据不足以解析帧头: {len(data)} < {constants.HEADER_SIZE} 字节"
        )

    length, request_id, kind_code = constants.HEADER.unpack_from(data)

    # Payload 以第一个 0x00 结束；找不到时消费全部剩余字节
    end = data.find(constants.TERMINATOR, constants.HEADER_SIZE)
    if end < 0:
        body = bytes(data[constants.HEADER_SIZE :])
    else:
        body = bytes(data[constants.HEADER_SIZE : end])

    frame_end = max(constants.LENGTH_PREFIX_SIZE + length, 0)
    packet = Packet(
        declared_length=length,
        request_id=request_id,
        kind_code=kind_code,
        body=body,
        direction=Direction.RESPONSE,
        raw=bytes(data[:frame_end]),
    )
    verify(packet, expected_code)

    # Payload 之后必须紧跟完整的终止符与填充，缺失时不做修复
    trailer = data[constants.HEADER_SIZE + len(body) : frame_end]
    if trailer != constants.TRAILER:
        raise PayloadLengthMismatch(
            f"帧不完整: 期望 {frame_end} 字节，终止符区域为 {bytes(trailer)!r}"
        )

    residual = bytes(data[frame_end:])
    logger.debug(
        "decode_response: id=%d type=%d size=%d residual=%d",
        request_id,
        kind_code,
        len(body),
        len(residual),
    )
    return packet, residual


def decode_login_response(data: bytes) -> tuple[Packet, bytes]:
    """解析登录响应。

    Args:
        data: 从 Socket 读到的原始字节，可能包含多个帧。

    Returns:
        tuple[Packet, bytes]: 解码出的第一个帧，以及属于后续帧的剩余字节。

    Raises:
        FramingError: 帧结构非法。
    """
    return _decode_response(data, ResponseType.LOGIN)


def decode_command_response(data: bytes) -> tuple[Packet, bytes]:
    """解析命令响应。返回值与异常同 decode_login_response。"""
    return _decode_response(data, ResponseType.COMMAND)
