# src/rcon_core/network.py
"""
Source RCON 核心库 - 网络模块 (Network) [Asyncio Edition]

封装 TCP 连接的建立、发送、接收与关闭。
该模块屏蔽了 asyncio Stream 的细节，向会话层提供纯粹的 bytes 收发接口。
每次 receive() 只执行一次读取，帧的边界由会话层负责处理。
"""

import asyncio
import logging

from .config import RconConfig
from .exceptions import (
    ConnectionClosed,
    DialError,
    DialRefused,
    DialTimeout,
    NetworkError,
    ReadTimeout,
    SessionClosed,
    WriteError,
)

logger = logging.getLogger(__name__)


class NetworkClient:
    """
    封装 asyncio TCP 操作的客户端。Socket 由该对象独占。
    """

    def __init__(self, config: RconConfig):
        self.config = config
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None

    @property
    def is_connected(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    async def connect(self) -> None:
        """
        建立 TCP 连接，受 connect_timeout 限制。
        """
        target = (self.config.host, self.config.port)
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(*target),
                timeout=self.config.connect_timeout,
            )
        except asyncio.TimeoutError:
            raise DialTimeout(
                f"连接超时 {self.config.address} ({self.config.connect_timeout}s)"
            ) from None
        except ConnectionRefusedError as e:
            raise DialRefused(f"连接被拒绝 {self.config.address}: {e}") from e
        except OSError as e:
            raise DialError(f"连接失败 {self.config.address}: {e}") from e

        logger.debug(f"TCP 连接已建立: {self.config.address}")

    async def send(self, data: bytes) -> None:
        """
        写入完整的帧并等待缓冲区排空。
        """
        if not self.writer or self.writer.is_closing():
            raise SessionClosed("Transport 已关闭")

        try:
            self.writer.write(data)
            await self.writer.drain()
        except (ConnectionError, OSError) as e:
            raise WriteError(f"发送失败: {e}") from e

    async def receive(self, max_bytes: int, timeout: float) -> bytes:
        """
        执行一次读取，最多返回 max_bytes 字节。

        使用 asyncio.wait_for 实现超时控制。读到 EOF 时抛出 ConnectionClosed。
        """
        if not self.reader:
            raise SessionClosed("Transport 未初始化")

        try:
            data = await asyncio.wait_for(self.reader.read(max_bytes), timeout=timeout)
        except asyncio.TimeoutError:
            raise ReadTimeout(f"接收超时 ({timeout}s)") from None
        except (ConnectionError, OSError) as e:
            raise NetworkError(f"接收错误: {e}") from e

        if not data:
            raise ConnectionClosed("连接已关闭 (EOF)")

        logger.debug(f"收到 {len(data)} 字节")
        return data

    async def close(self) -> None:
        """关闭 Transport。挂起中的 receive() 会因 EOF 立即返回。"""
        writer, self.writer = self.writer, None
        if writer is None:
            return

        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"关闭连接时出现异常: {e}")
        logger.debug("TCP Transport 已关闭")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
