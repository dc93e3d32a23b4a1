# File: src/rcon_core/state.py
"""
Source RCON 核心库 - 状态模块

负责定义和存储会话的易变状态。
本模块不包含业务逻辑，仅作为数据容器供 Session 读写。
"""

from dataclasses import dataclass
from enum import Enum, auto


class SessionStatus(Enum):
    """会话的生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> AUTHENTICATING -> READY -> CLOSED
                          |
                          v
                        CLOSED
    """

    DISCONNECTED = auto()
    """初始状态，会话已实例化但尚未连接。"""

    AUTHENTICATING = auto()
    """TCP 已连接，正在进行登录握手。"""

    READY = auto()
    """登录成功，可以执行命令。"""

    CLOSED = auto()
    """Socket 已释放。可能是用户主动关闭，也可能是 dial 失败。"""


@dataclass
class SessionState:
    """存储 RCON 会话的易变状态数据。

    该对象是非持久化的。重新连接时应创建新的会话，而不是复用此对象。

    Attributes:
        status: 当前会话状态。
        last_request_id: 最近一次被服务器确认的 Request ID，作为下一个 ID 的种子。
        pending_overflow: 已从 Socket 读出、但属于下一个帧的字节。
        last_error: 最近一次发生的错误信息描述，用于 UI 显示。
    """

    status: SessionStatus = SessionStatus.DISCONNECTED
    last_request_id: int = 0
    pending_overflow: bytes = b""
    last_error: str = ""

    @property
    def is_ready(self) -> bool:
        """判断当前是否可以执行命令。"""
        return self.status is SessionStatus.READY
