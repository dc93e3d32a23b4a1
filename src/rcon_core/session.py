# File: src/rcon_core/session.py
"""
Source RCON 会话引擎 (Session Engine)

职责：
1. 资源组装：State + Network + Config。
2. 登录握手：包含服务器在真正的登录响应前多发一个帧的兼容处理。
3. 命令执行：对调用方隐藏 TCP 没有消息边界这一事实。
4. 生命周期：DISCONNECTED -> AUTHENTICATING -> READY -> CLOSED。
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

from .config import RconConfig, create_config_from_dict
from .exceptions import (
    AuthenticationFailed,
    IdMismatch,
    NetworkError,
    ResponseKindMismatch,
    SessionClosed,
    StateError,
    UnknownResponse,
)
from .network import NetworkClient
from .protocols import constants, packet as packets
from .protocols.packet import Packet, ResponseKind
from .state import SessionState, SessionStatus

logger = logging.getLogger(__name__)

# 登录响应最多读取两次 (首次 + 一次重试)
LOGIN_READ_ATTEMPTS = 2

# 定义回调函数类型别名：支持同步或异步函数
StatusCallback = Callable[[SessionStatus, str], Any | Awaitable[Any]]


class RconSession:
    """Source RCON 会话 (Async)。

    一个会话对应一条 TCP 连接。请求与响应严格串行：
    每次往返 (写入 + 读取) 都在同一把锁内完成，同一时刻最多只有一个请求在途。
    """

    def __init__(
        self,
        config: RconConfig,
        status_callback: StatusCallback | None = None,
    ) -> None:
        """初始化会话。

        Args:
            config: 连接配置。
            status_callback: 可选的状态变更回调。也可以使用 add_listener 注册。
        """
        self.config = config

        self._listeners: list[StatusCallback] = []
        if status_callback:
            self.add_listener(status_callback)

        self._state = SessionState()
        self.net_client = NetworkClient(config)
        self._lock = asyncio.Lock()
        self._callback_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        """获取当前会话状态的只读副本。"""
        return replace(self._state)

    @property
    def is_ready(self) -> bool:
        return self._state.is_ready

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    async def dial(self) -> "RconSession":
        """建立连接并完成登录。

        任何失败都会关闭 Socket，会话进入 CLOSED 状态，不可复用。

        Returns:
            RconSession: 自身，便于链式调用。

        Raises:
            StateError: 会话不是 DISCONNECTED 状态。
            DialError: TCP 连接失败 (DialTimeout / DialRefused)。
            AuthenticationFailed: 密码错误。
            ProtocolError: 登录响应非法 (UnknownResponse / IdMismatch 等)。
            NetworkError: 登录过程中的读写失败。
        """
        if self._state.status is not SessionStatus.DISCONNECTED:
            raise StateError(f"会话状态为 {self._state.status.name}，无法重复连接")

        try:
            await self.net_client.connect()
            self._update_status(
                SessionStatus.AUTHENTICATING, f"正在登录 {self.config.address}..."
            )

            async with self._lock:
                response = await self._login()
        except BaseException as e:
            self._state.last_error = str(e)
            await self._release(f"连接失败: {e}")
            raise

        self._state.last_request_id = response.request_id
        self._update_status(SessionStatus.READY, "登录成功")
        return self

    async def execute(self, command: str) -> str:
        """发送命令并返回服务器的响应文本。

        Args:
            command: 命令文本 (编码后不超过 1024 字节)。

        Returns:
            str: 响应 Payload 原文。

        Raises:
            SessionClosed: 会话已关闭，或在等待响应时被 close() 打断。
            StateError: 会话尚未登录。
            ReadTimeout: 等待响应超时，会话仍保持 READY。
            FramingError: 响应帧结构非法，会话仍保持 READY。
            ResponseError: 响应类型或 ID 与请求不符。
        """
        async with self._lock:
            self._ensure_ready()

            request = packets.build_command_request(self._state.last_request_id, command)
            await self._send(request)
            response = await self._read_response(packets.decode_command_response)

            kind = packets.classify(response).kind
            if kind is ResponseKind.UNKNOWN:
                raise UnknownResponse(f"无法识别的命令响应类型: {response.kind_code}")
            if kind is not ResponseKind.COMMAND:
                raise ResponseKindMismatch(f"期望命令响应，实际收到 {kind.value}")
            if response.request_id != request.request_id:
                raise IdMismatch(request.request_id, response.request_id)

            self._state.last_request_id = response.request_id
            return response.payload

    async def close(self) -> None:
        """关闭会话，释放 Socket。

        不等待会话锁：正在等待响应的 execute() 会被打断并抛出 SessionClosed。
        重复调用是安全的。
        """
        if self._state.status is SessionStatus.CLOSED:
            return
        await self._release("会话已关闭")

    async def __aenter__(self) -> "RconSession":
        if self._state.status is SessionStatus.DISCONNECTED:
            await self.dial()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # 内部实现 (Async)
    # =========================================================================

    async def _login(self) -> Packet:
        """发送登录请求并读取登录响应。调用方必须持有会话锁。

        部分服务器会在真正的登录响应 (Type 2) 之前先发送一个空的
        RESPONSE_VALUE (Type 0) 或无法识别的帧，因此首次读取到非登录
        响应时允许再读一次。

        Raises:
            AuthenticationFailed: 响应 ID 为 -1。
            UnknownResponse: 两次读取均无法识别。
            ResponseKindMismatch: 重试后仍不是登录响应。
            IdMismatch: 登录响应 ID 与请求不一致。
        """
        request = packets.build_login_request(self.config.password)
        await self._send(request)

        kind = ResponseKind.UNKNOWN
        for attempt in range(1, LOGIN_READ_ATTEMPTS + 1):
            response = await self._read_response(packets.decode_login_response)
            kind = packets.classify(response).kind

            if kind is ResponseKind.INVALID:
                raise AuthenticationFailed()
            if kind is ResponseKind.LOGIN:
                break
            logger.debug(
                f"登录响应第 {attempt} 次读取得到 {kind.value} (type={response.kind_code})"
            )
        else:
            if kind is ResponseKind.UNKNOWN:
                raise UnknownResponse(f"无法识别的登录响应类型: {response.kind_code}")
            raise ResponseKindMismatch(f"期望登录响应，实际收到 {kind.value}")

        if response.request_id != request.request_id:
            raise IdMismatch(request.request_id, response.request_id)
        return response

    async def _read_response(
        self, decoder: Callable[[bytes], tuple[Packet, bytes]]
    ) -> Packet:
        """读取一个帧并解码，剩余字节存入 pending_overflow。"""
        data = await self._read_frame()
        response, residual = decoder(data)
        self._state.pending_overflow = residual
        if residual:
            logger.debug(f"缓存 {len(residual)} 字节属于下一个帧")
        return response

    async def _read_frame(self) -> bytes:
        """获取足以解码一个帧的字节。

        如果上次解码留下了属于下一个帧的字节，直接使用它们而不访问网络。
        否则执行一次读取；若不足 4 字节 (无法得知帧长度)，再追加读取一次。

        注意: 只支持一次追加读取。被拆分到更多次读取中的大响应不做重组，
        会以 PayloadLengthMismatch 失败。
        """
        if self._state.pending_overflow:
            data = self._state.pending_overflow
            self._state.pending_overflow = b""
        else:
            data = await self._receive(constants.SIZE_MAX)

        if len(data) < constants.LENGTH_PREFIX_SIZE:
            data += await self._receive(constants.SIZE_MAX - len(data))

        return data

    async def _send(self, request: Packet) -> None:
        try:
            await self.net_client.send(request.raw)
        except NetworkError as e:
            self._raise_if_closed(e)
            raise
        logger.debug(f"已发送 {request!r}")

    async def _receive(self, max_bytes: int) -> bytes:
        try:
            return await self.net_client.receive(max_bytes, self.config.read_timeout)
        except NetworkError as e:
            self._raise_if_closed(e)
            raise

    def _raise_if_closed(self, cause: Exception) -> None:
        """I/O 失败时如果会话已被关闭，统一转换为 SessionClosed。"""
        if self._state.status is SessionStatus.CLOSED:
            raise SessionClosed("会话已关闭") from cause

    def _ensure_ready(self) -> None:
        status = self._state.status
        if status is SessionStatus.CLOSED:
            raise SessionClosed("会话已关闭")
        if status is not SessionStatus.READY:
            raise StateError(f"会话尚未就绪 (状态: {status.name})")

    async def _release(self, msg: str) -> None:
        """标记为 CLOSED 并关闭 Socket。先改状态，挂起的读取才能识别为主动关闭。"""
        self._state.pending_overflow = b""
        self._update_status(SessionStatus.CLOSED, msg)
        await self.net_client.close()

    def _update_status(self, status: SessionStatus, msg: str) -> None:
        """更新内部状态并触发所有回调。"""
        self._state.status = status
        logger.info(f"[{status.name}] {msg}")

        for callback in self._listeners:
            try:
                if inspect.iscoroutinefunction(callback):
                    task = asyncio.create_task(callback(status, msg))  # type: ignore
                    self._callback_tasks.add(task)
                    task.add_done_callback(self._on_callback_done)
                else:
                    callback(status, msg)
            except Exception as e:
                logger.error(f"回调执行异常: {e}")

    def _on_callback_done(self, task: asyncio.Task) -> None:
        """异步回调结束后释放引用，并记录其中抛出的异常。"""
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"异步回调执行异常: {exc!r}")


async def dial(
    address: str,
    password: str,
    *,
    connect_timeout: float | None = None,
    read_timeout: float | None = None,
) -> RconSession:
    """连接到 `host:port` 并完成登录。

    Args:
        address: 服务器地址，缺省端口为 27015。
        password: RCON 密码。
        connect_timeout: TCP 连接超时 (秒)，默认 10。
        read_timeout: 单次读取超时 (秒)，默认 60。

    Returns:
        RconSession: 处于 READY 状态的会话。失败时不会返回任何会话。

    Raises:
        ConfigError: 地址格式错误。
        RconError: 见 RconSession.dial。
    """
    config = create_config_from_dict(
        {
            "address": address,
            "password": password,
            "connect_timeout": connect_timeout,
            "read_timeout": read_timeout,
        }
    )
    session = RconSession(config)
    return await session.dial()
