# File: src/rcon_core/utils.py
"""
Source RCON 核心库 - 通用工具箱

地址解析与输出清洗。与协议本身无关，供配置层和 CLI 使用。
"""

import re

DEFAULT_PORT = 27015

# Minecraft 等服务器在输出中夹带的格式码 (§ + 一个字符)
_FORMAT_CODE_RE = re.compile("§.", re.DOTALL)
# ANSI 转义序列 (颜色、光标控制)
_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")


def split_address(address: str, default_port: int = DEFAULT_PORT) -> tuple[str, int]:
    """将 `host:port` 字符串拆分为主机与端口。

    支持 IPv6 方括号写法 (`[::1]:27015`)，缺省端口时使用 default_port。

    Args:
        address: 地址字符串。
        default_port: 未指定端口时的默认值。

    Returns:
        tuple[str, int]: (host, port)。

    Raises:
        ValueError: 端口不是合法整数或超出范围。
    """
    address = address.strip()
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep:
            raise ValueError(f"地址格式无效: {address}")
        port_str = rest[1:] if rest.startswith(":") else ""
    elif address.count(":") == 1:
        host, _, port_str = address.partition(":")
    else:
        # 无端口，或者是不带方括号的裸 IPv6 地址
        host, port_str = address, ""

    if not port_str:
        return host, default_port

    try:
        port = int(port_str)
    except ValueError:
        raise ValueError(f"端口格式无效: {port_str}") from None
    if not 0 < port < 65536:
        raise ValueError(f"端口超出范围: {port}")
    return host, port


def join_address(host: str, port: int) -> str:
    """split_address 的逆操作，IPv6 地址会加上方括号。"""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def strip_formatting(text: str) -> str:
    """移除服务器输出中的格式码与 ANSI 转义序列，仅用于显示。

    这不是协议的一部分：Payload 本身始终原样返回给调用方。
    """
    return _ANSI_RE.sub("", _FORMAT_CODE_RE.sub("", text))
