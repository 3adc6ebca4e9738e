# example.py
"""
这是一个 RconClient API 的最小示例。

它演示了如何将 rcon-core 作为一个库导入到你自己的项目中，
完成 "登录 - 执行命令 - 关闭" 的完整流程。

运行此示例：
1. 确保已在根目录创建并配置了 .env 文件 (RCON_HOST / RCON_PASSWORD 等)。
2. 确保已安装依赖： pip install -e .
3. 从项目根目录运行： python example.py [命令 ...]
"""

import asyncio
import logging
import sys
from pathlib import Path

from rcon_core import (
    AuthenticationError,
    ConfigError,
    ConnectionStatus,
    RconClient,
    RconConnectionError,
    load_config_from_env,
)

# 日志配置
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("RconExample")


def on_status_change(status: ConnectionStatus, msg: str) -> None:
    print(f"\n>>> [Callback] 状态变更: {status.name} | 消息: {msg}\n")


async def main(commands: list[str]) -> int:
    env_path = Path(__file__).resolve().parent / ".env"
    config = load_config_from_env(env_path if env_path.exists() else None)
    logger.info(f"配置加载完成: {config!r}")

    client = RconClient(config, status_callback=on_status_change)
    client.on("error", lambda err: logger.error(f"连接错误: {err}"))

    async with client:
        # 并发发送：响应按 ID 关联，到达顺序无关紧要
        replies = await asyncio.gather(
            *(client.send_command(cmd) for cmd in commands or ["list"])
        )
        for reply in replies:
            print(f"[id={reply.id}] {reply.body}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main(sys.argv[1:])))
    except ConfigError as ce:
        logger.error(f"配置错误: {ce}")
    except AuthenticationError as ae:
        logger.error(f"认证被拒绝: {ae}")
    except RconConnectionError as ne:
        logger.error(f"连接异常: {ne}")
    except KeyboardInterrupt:
        logger.info("收到用户中断信号 (Ctrl+C)，准备退出...")
    sys.exit(1)
