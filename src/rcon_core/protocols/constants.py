# src/rcon_core/protocols/constants.py
"""
Source RCON 协议层 - 常量定义

本模块定义了线路格式相关的类型码、长度限制与 ID 范围。
采用命名空间 (Class Namespace) 按方向 (请求/响应) 组织，不使用可变全局变量。

帧结构 (小端序):
    [Length:int32][RequestID:int32][Type:int32][Payload][0x00 终止符][0x00 填充]

Length 不包含自身的 4 字节，最小值为 10 (4 + 4 + 1 + 1)。
"""

import struct

# =========================================================================
# 1. 帧结构 (Frame Layout)
# =========================================================================

# 长度前缀 (Length 字段本身)
LENGTH_PREFIX = struct.Struct("<i")
LENGTH_PREFIX_SIZE = LENGTH_PREFIX.size  # 4

# 完整帧头: Length + RequestID + Type
HEADER = struct.Struct("<3i")
HEADER_SIZE = HEADER.size  # 12

TERMINATOR = b"\x00"
TRAILER = b"\x00\x00"  # 终止符 + 填充

# RequestID(4) + Type(4) + 终止符(1) + 填充(1)
LENGTH_MIN = 10


# =========================================================================
# 2. 协议类型码 (Type Codes)
# =========================================================================


class RequestType:
    """客户端 -> 服务器 的类型码"""

    LOGIN = 3  # SERVERDATA_AUTH
    COMMAND = 2  # SERVERDATA_EXECCOMMAND


class ResponseType:
    """服务器 -> 客户端 的类型码 (与请求复用同一数值空间)"""

    LOGIN = 2  # SERVERDATA_AUTH_RESPONSE
    COMMAND = 0  # SERVERDATA_RESPONSE_VALUE


# =========================================================================
# 3. 长度限制 (Size Limits)
# =========================================================================


class RequestLimits:
    """客户端 -> 服务器 的 Payload 上限"""

    PAYLOAD_MAX = 1024
    LENGTH_MAX = LENGTH_MIN + PAYLOAD_MAX  # 1034


class ResponseLimits:
    PAYLOAD_MAX = 4096
    LENGTH_MAX = LENGTH_MIN + PAYLOAD_MAX  # 4106


# 单帧在线路上的最大字节数 (含长度前缀)，即读缓冲区容量
SIZE_MAX = ResponseLimits.LENGTH_MAX + LENGTH_PREFIX_SIZE  # 4110


# =========================================================================
# 4. Request ID
# =========================================================================


class RequestId:
    INVALID = -1  # 认证失败标记
    MAX = 0x7FFFFFFF  # 31 位正整数上限
    FRESH_RANGE = 100000  # 新生成 ID 截断为 5 位十进制
