"""
Source RCON 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (含 .env 文件) 或字典中加载配置。
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigError
from .utils import DEFAULT_PORT, join_address, split_address

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 60.0

# 环境变量前缀，例如 RCON_PASSWORD
ENV_PREFIX = "RCON_"

# 默认配置文件位置
DEFAULT_CONFIG_PATH = Path.home() / ".rcon-core.toml"


@dataclass(frozen=True)
class RconConfig:
    """RconSession 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        host: RCON 服务器主机名或 IP。
        port: RCON 端口 (Source 默认 27015)。
        password: RCON 密码。
        connect_timeout: TCP 连接超时 (秒)。
        read_timeout: 单次读取超时 (秒)。
    """

    host: str
    port: int
    password: str
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT

    @property
    def address(self) -> str:
        """`host:port` 形式的服务器地址。"""
        return join_address(self.host, self.port)

    def __repr__(self) -> str:
        """隐藏密码字段，防止日志泄露敏感信息。"""
        return (
            f"<{self.__class__.__name__} "
            f"server={self.address}, "
            f"password='******', "
            f"timeouts=({self.connect_timeout}s, {self.read_timeout}s)>"
        )


def create_config_from_dict(raw_data: dict[str, Any]) -> RconConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。
    如果提供了 `address` (host:port)，它会覆盖 host/port。

    Args:
        raw_data: 原始配置字典 (来自 TOML、Env 或命令行)。

    Returns:
        RconConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """

    def _req(key: str) -> Any:
        """获取必要字段，缺失则报错"""
        if raw_data.get(key) is None:
            raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
        return raw_data[key]

    def _to_float(key: str, default: float) -> float:
        val = raw_data.get(key)
        if val is None:
            return default
        try:
            result = float(val)
        except (TypeError, ValueError):
            raise ConfigError(f"超时格式无效 '{key}': {val}") from None
        if result <= 0:
            raise ConfigError(f"超时必须为正数 '{key}': {val}")
        return result

    host = str(raw_data.get("host") or DEFAULT_HOST)
    port_val = raw_data.get("port", DEFAULT_PORT)

    if raw_data.get("address"):
        try:
            host, port_val = split_address(str(raw_data["address"]), int(port_val))
        except ValueError as e:
            raise ConfigError(f"地址格式无效: {e}") from e

    try:
        port = int(port_val)
    except (TypeError, ValueError):
        raise ConfigError(f"端口格式无效: {port_val}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"端口超出范围: {port}")

    return RconConfig(
        host=host,
        port=port,
        password=str(_req("password")),
        connect_timeout=_to_float("connect_timeout", DEFAULT_CONNECT_TIMEOUT),
        read_timeout=_to_float("read_timeout", DEFAULT_READ_TIMEOUT),
    )


def read_toml_profile(file_path: Path, profile: str = "default") -> dict[str, Any]:
    """从 TOML 文件读取原始配置字典。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [rcon]: 单服务器配置块。
    3. Root: 兼容根目录直接配置。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    if "profile" in data:
        if profile in data["profile"]:
            return dict(data["profile"][profile])
        if profile != "default":
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        return {}

    if "rcon" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [rcon] 节，忽略 profile='{profile}'。")
        return dict(data["rcon"])

    return {k: v for k, v in data.items() if not isinstance(v, dict)}


def read_env(dotenv_path: Path | None = None) -> dict[str, Any]:
    """读取 `RCON_` 前缀的环境变量。

    会先通过 python-dotenv 加载 .env 文件 (不覆盖已存在的环境变量)。
    """
    path = str(dotenv_path) if dotenv_path else find_dotenv(usecwd=True)
    if path and load_dotenv(path, override=False):
        logger.debug(f"已加载 .env 文件: {path}")

    env_map = {
        "host": "HOST",
        "port": "PORT",
        "password": "PASSWORD",
        "connect_timeout": "CONNECT_TIMEOUT",
        "read_timeout": "READ_TIMEOUT",
    }

    raw_data = {}
    for cfg_key, env_suffix in env_map.items():
        val = os.environ.get(f"{ENV_PREFIX}{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val
    return raw_data


def load_config_from_toml(file_path: Path, profile: str = "default") -> RconConfig:
    """从 TOML 文件加载配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败、Profile 不存在或字段非法。
    """
    return create_config_from_dict(read_toml_profile(file_path, profile))


def load_config_from_env(dotenv_path: Path | None = None) -> RconConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    读取 `RCON_HOST`、`RCON_PORT`、`RCON_PASSWORD`、`RCON_CONNECT_TIMEOUT`、
    `RCON_READ_TIMEOUT`。

    Raises:
        ConfigError: 未检测到任何相关环境变量，或字段非法。
    """
    raw_data = read_env(dotenv_path)
    if not raw_data:
        raise ConfigError(f"未检测到 {ENV_PREFIX} 前缀的环境变量")
    return create_config_from_dict(raw_data)
