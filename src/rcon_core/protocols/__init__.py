# src/rcon_core/protocols/__init__.py
"""
Source RCON 协议层 (Protocol Layer)

本包负责协议数据包的纯粹构建 (Build) 与解析 (Parse)。

- 不包含任何 socket 操作或网络 I/O。
- 不包含任何会话状态 (State)。
- 不依赖于 session 或 network 层。
"""

from . import constants
from .packet import (
    Direction,
    Packet,
    PacketMetadata,
    ResponseKind,
    build_command_request,
    build_login_request,
    classify,
    decode_command_response,
    decode_login_response,
    encode,
    next_id,
    verify,
)

# 公共 API
__all__ = [
    "constants",
    "Direction",
    "Packet",
    "PacketMetadata",
    "ResponseKind",
    "build_login_request",
    "build_command_request",
    "decode_login_response",
    "decode_command_response",
    "encode",
    "classify",
    "verify",
    "next_id",
]
