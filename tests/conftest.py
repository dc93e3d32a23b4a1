# tests/conftest.py
import asyncio
import socket
import struct
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rcon_core.config import RconConfig


def make_frame(request_id: int, kind_code: int, body: bytes | str = b"") -> bytes:
    """辅助函数：按线路格式构造一个完整的帧"""
    if isinstance(body, str):
        body = body.encode("utf-8")
    data = struct.pack("<2i", request_id, kind_code) + body + b"\x00\x00"
    return struct.pack("<i", len(data)) + data


@pytest.fixture
def valid_config():
    """
    [Fixture] 返回一个指向本机的 RconConfig 对象。超时设置较短，避免测试挂起。
    """
    return RconConfig(
        host="127.0.0.1",
        port=27015,
        password="secret",
        connect_timeout=2.0,
        read_timeout=2.0,
    )


class StubRconServer:
    """
    运行在本机随机端口上的最小 RCON 服务器，用于端到端测试。

    - 登录成功时，按 Source 服务器的行为在同一次写入中先回一个空的
      RESPONSE_VALUE (Type 0)，再回 AUTH_RESPONSE (Type 2)。
    - 密码错误时回 ID = -1。
    - 命令在 self.commands 中查表，未知命令回 "Unknown command: xxx"。
    - silent=True 时收到命令不作应答 (用于测试超时与关闭)。
    """

    def __init__(self, password: str = "secret"):
        self.password = password
        self.commands: dict[str, str] = {}
        self.received: list[tuple[int, int, str]] = []
        self.silent = False
        self.server: asyncio.Server | None = None
        self.port = 0

    async def start(self) -> None:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self.server:
            self.server.close()
            await self.server.wait_closed()

    async def _handle(self, reader, writer) -> None:
        try:
            while True:
                try:
                    header = await reader.readexactly(4)
                    (length,) = struct.unpack("<i", header)
                    data = await reader.readexactly(length)
                except (asyncio.IncompleteReadError, ConnectionError):
                    break

                request_id, kind = struct.unpack("<2i", data[:8])
                body = data[8:-2].decode("utf-8")
                self.received.append((request_id, kind, body))

                if kind == 3:
                    if body == self.password:
                        writer.write(
                            make_frame(request_id, 0) + make_frame(request_id, 2)
                        )
                    else:
                        writer.write(make_frame(-1, 2))
                elif kind == 2 and not self.silent:
                    reply = self.commands.get(body, f"Unknown command: {body}")
                    writer.write(make_frame(request_id, 0, reply))
                await writer.drain()
        finally:
            writer.close()


@pytest_asyncio.fixture
async def rcon_server():
    server = StubRconServer()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def server_config(rcon_server) -> RconConfig:
    """指向 StubRconServer 的配置"""
    return RconConfig(
        host="127.0.0.1",
        port=rcon_server.port,
        password="secret",
        connect_timeout=2.0,
        read_timeout=2.0,
    )


@pytest.fixture
def closed_port() -> int:
    """返回一个当前没有进程监听的本机端口"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
