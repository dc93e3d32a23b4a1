# File: src/rcon_core/main.py
"""
Rcon-Core 命令行入口 (CLI)

无参数时进入交互模式，逐行读取命令并打印响应；
带参数时将所有参数以空格拼接为一条命令执行一次后退出。

配置优先级 (低 -> 高): 默认值 < TOML 配置文件 < 环境变量 (.env) < 命令行参数。

示例:
    rcon-core --host example.com
    rcon-core --host minecraft.example.com stop
    RCON_PORT=25575 rcon-core list
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TextIO

from . import __version__
from .config import (
    DEFAULT_CONFIG_PATH,
    RconConfig,
    create_config_from_dict,
    read_env,
    read_toml_profile,
)
from .exceptions import (
    AuthError,
    ConfigError,
    ConnectionClosed,
    RconError,
    SessionClosed,
    WriteError,
)
from .session import RconSession
from .utils import strip_formatting

logger = logging.getLogger("rcon_core.cli")

PROMPT = "$> "

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcon-core",
        description="Source RCON 命令行客户端。无命令参数时进入交互模式。",
    )
    parser.add_argument("command", nargs="*", help="要执行的命令 (以空格拼接)")
    parser.add_argument("--host", help="RCON 服务器主机名 (默认 localhost)")
    parser.add_argument("--port", type=int, help="RCON 端口 (默认 27015)")
    parser.add_argument("--password", help="RCON 密码")
    parser.add_argument(
        "--config",
        type=Path,
        help=f"TOML 配置文件 (默认 {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--profile", default="default", help="配置文件中的预设名")
    parser.add_argument(
        "--raw", action="store_true", help="原样输出，不移除服务器的格式码"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_config(args: argparse.Namespace) -> RconConfig:
    """合并配置文件、环境变量与命令行参数。

    Raises:
        ConfigError: 配置缺失或非法。
    """
    raw: dict = {}

    config_path = args.config or DEFAULT_CONFIG_PATH
    if args.config or config_path.exists():
        logger.debug(f"使用配置文件: {config_path}")
        raw.update(read_toml_profile(config_path, args.profile))

    raw.update(read_env())

    flags = {"host": args.host, "port": args.port, "password": args.password}
    raw.update({k: v for k, v in flags.items() if v is not None})

    return create_config_from_dict(raw)


def _display(text: str, raw: bool) -> str:
    return text if raw else strip_formatting(text)


async def run_interactive(
    session: RconSession, stdin: TextIO, stdout: TextIO, raw: bool = False
) -> None:
    """交互模式：逐行读取命令直到 EOF。

    单条命令失败只记录日志并继续；会话被关闭或连接断开时退出循环。
    """
    stdout.write(PROMPT)
    stdout.flush()

    while True:
        # 阻塞的 readline 放到线程中执行，避免卡住事件循环
        line = await asyncio.to_thread(stdin.readline)
        if not line:
            break

        command = line.rstrip("\r\n")
        if command.strip():
            try:
                response = await session.execute(command)
            except (SessionClosed, ConnectionClosed, WriteError) as e:
                logger.error(f"会话已断开: {e}")
                break
            except RconError as e:
                logger.error(f"执行失败: {e}")
            else:
                stdout.write(_display(response, raw) + "\n")

        stdout.write(PROMPT)
        stdout.flush()

    stdout.write("\n")
    stdout.flush()


async def execute_once(
    session: RconSession, tokens: list[str], stdout: TextIO, raw: bool = False
) -> int:
    """单次模式：将参数以空格拼接为一条命令执行。"""
    command = " ".join(tokens)
    try:
        response = await session.execute(command)
    except RconError as e:
        logger.error(f"执行失败: {e}")
        return EXIT_FAILURE

    stdout.write(_display(response, raw) + "\n")
    stdout.flush()
    return EXIT_OK


async def run_async(args: argparse.Namespace, stdin: TextIO, stdout: TextIO) -> int:
    try:
        config = resolve_config(args)
    except ConfigError as ce:
        logger.error(f"配置错误: {ce}")
        return EXIT_FAILURE

    logger.debug(f"配置加载完成: {config!r}")

    try:
        session = await RconSession(config).dial()
    except AuthError as ae:
        logger.error(f"认证被拒绝: {ae}")
        return EXIT_FAILURE
    except RconError as e:
        logger.error(f"无法连接到 RCON 服务器 {config.address}: {e}")
        return EXIT_FAILURE

    try:
        if args.command:
            return await execute_once(session, args.command, stdout, args.raw)
        await run_interactive(session, stdin, stdout, args.raw)
        return EXIT_OK
    finally:
        await session.close()


def main(argv: list[str] | None = None) -> int:
    """程序主入口点，返回进程退出码。"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        return asyncio.run(run_async(args, sys.stdin, sys.stdout))
    except KeyboardInterrupt:
        logger.info("收到中断信号，退出。")
        return EXIT_INTERRUPTED


def run() -> None:
    """console_scripts 入口。"""
    sys.exit(main())


if __name__ == "__main__":
    run()
