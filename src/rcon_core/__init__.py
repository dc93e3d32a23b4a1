# src/rcon_core/__init__.py
"""
Rcon-Core v1.0.0
Source RCON 远程控制台协议的异步客户端核心库。
"""

# 暴露核心配置
from .config import (
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    AuthenticationFailed,
    AuthError,
    ConfigError,
    DialError,
    DialRefused,
    DialTimeout,
    IdMismatch,
    NetworkError,
    ProtocolError,
    RconError,
    ReadTimeout,
    ResponseKindMismatch,
    SessionClosed,
    StateError,
    UnknownResponse,
)

# 暴露会话与状态
from .session import RconSession, dial
from .state import SessionState, SessionStatus

__version__ = "1.0.0"

__all__ = [
    "RconSession",
    "dial",
    "RconConfig",
    "SessionState",
    "SessionStatus",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "RconError",
    "ConfigError",
    "StateError",
    "NetworkError",
    "DialError",
    "DialTimeout",
    "DialRefused",
    "ReadTimeout",
    "SessionClosed",
    "ProtocolError",
    "UnknownResponse",
    "ResponseKindMismatch",
    "IdMismatch",
    "AuthError",
    "AuthenticationFailed",
]
