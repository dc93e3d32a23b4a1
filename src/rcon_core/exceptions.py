# File: src/rcon_core/exceptions.py
"""
Source RCON 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如 CLI）能进行精细的错误处理。

层级:
    RconError
    ├── ConfigError
    ├── StateError
    ├── NetworkError            (传输层)
    │   ├── DialError
    │   │   ├── DialTimeout
    │   │   └── DialRefused
    │   ├── ReadTimeout
    │   ├── WriteError
    │   ├── ConnectionClosed
    │   └── SessionClosed
    ├── ProtocolError
    │   ├── FramingError        (帧结构)
    │   └── ResponseError       (协议语义)
    └── AuthError
        └── AuthenticationFailed
"""


class RconError(Exception):
    """Source RCON 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 rcon-core 抛出的已知错误。
    """

    pass


class ConfigError(RconError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 host/password)。
    2. 字段格式错误 (如端口不是整数或超出范围)。
    3. 找不到配置文件或 Profile。
    """

    pass


class StateError(RconError):
    """状态机错误 (FSM Violation)。

    触发场景:
    1. 在未建立会话时执行命令。
    2. 对同一个会话对象重复 dial。
    """

    pass


# =========================================================================
# 传输层 (Transport)
# =========================================================================


class NetworkError(RconError):
    """网络层面的错误 (I/O 级别)。

    此类错误对当前操作是致命的，但上层可以选择关闭并重新 dial。
    """

    pass


class DialError(NetworkError):
    """TCP 连接建立失败 (DNS 解析失败、网络不可达等)。"""

    pass


class DialTimeout(DialError):
    """TCP 连接超时。"""

    pass


class DialRefused(DialError):
    """TCP 连接被拒绝 (目标端口未监听)。"""

    pass


class ReadTimeout(NetworkError):
    """等待服务器响应超时。不影响会话的 READY 状态。"""

    pass


class WriteError(NetworkError):
    """写入 Socket 失败。"""

    pass


class ConnectionClosed(NetworkError):
    """对端关闭了连接 (读到 EOF)。"""

    pass


class SessionClosed(NetworkError):
    """会话已被本地关闭，之后的任何操作都会抛出此异常。"""

    pass


# =========================================================================
# 协议层 (Protocol)
# =========================================================================


class ProtocolError(RconError):
    """协议交互错误 (逻辑级别)。"""

    pass


class FramingError(ProtocolError):
    """帧结构错误。

    意味着数据流已损坏或服务器行为异常，对当前读取总是致命的，从不自动修复。
    """

    pass


class LengthTooSmall(FramingError):
    """帧长度小于最小值 (10)。"""

    pass


class LengthTooLarge(FramingError):
    """帧长度超过该方向允许的最大值。"""

    pass


class PayloadTooSmall(LengthTooSmall):
    """构建请求时，生成的帧低于最小长度。"""

    pass


class PayloadTooLarge(LengthTooLarge):
    """构建请求时，Payload 超过 1024 字节。"""

    pass


class PayloadLengthMismatch(FramingError):
    """帧头声明的长度与实际消费的 Payload 长度不一致。"""

    pass


class TypeMismatch(FramingError):
    """请求包的类型码与期望值不一致。"""

    pass


class IncompleteFrame(FramingError):
    """数据不足以解析出完整的帧头 (12 字节)。"""

    pass


class ResponseError(ProtocolError):
    """响应语义错误 (类型或 ID 与请求不符)。"""

    pass


class UnknownResponse(ResponseError):
    """响应类型无法识别 (分类结果为 unknown)。"""

    pass


class ResponseKindMismatch(ResponseError):
    """响应类型可识别，但不是当前请求期望的类型。"""

    pass


class IdMismatch(ResponseError):
    """响应的 Request ID 与刚发送的请求不一致。"""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(f"响应 ID {received} 与请求 ID {expected} 不匹配")
        self.expected = expected
        self.received = received


# =========================================================================
# 认证 (Authentication)
# =========================================================================


class AuthError(RconError):
    """认证被拒绝 (业务层面的失败)。

    与一般的协议语义错误区分开，以便上层提示用户重新输入凭据。
    """

    pass


class AuthenticationFailed(AuthError):
    """服务器以 Request ID = -1 回应登录请求 (密码错误)。"""

    def __init__(self, message: str = "密码错误，服务器拒绝认证") -> None:
        super().__init__(message)
