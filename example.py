# example.py
"""
这是一个 Rcon-Core API 的最小示例。

它演示了如何将 rcon-core 作为一个库导入到你自己的项目中，
完成“连接-认证-执行命令-关闭”的完整流程。

运行此示例：
1. 在根目录创建 .env 文件，写入 RCON_HOST / RCON_PORT / RCON_PASSWORD。
2. 确保已安装： pip install -e .
3. 从项目根目录运行： python example.py [命令]
"""

import asyncio
import logging
import sys

from rcon_core import (
    AuthenticationFailed,
    ConfigError,
    RconError,
    RconSession,
    SessionStatus,
    load_config_from_env,
)

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("RconExample")


def on_status_change(status: SessionStatus, msg: str) -> None:
    print(f"\n>>> [Callback] 状态变更: {status.name} | 消息: {msg}\n")


async def main(command: str) -> int:
    try:
        config = load_config_from_env()
    except ConfigError as ce:
        logger.error(f"配置错误: {ce}")
        return 1

    try:
        async with RconSession(config, status_callback=on_status_change) as session:
            response = await session.execute(command)
            print(response)
    except AuthenticationFailed as ae:
        logger.error(f"认证被拒绝: {ae}")
        return 1
    except RconError as e:
        logger.exception(f"运行时异常: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(" ".join(sys.argv[1:]) or "status")))
