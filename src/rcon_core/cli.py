# src/rcon_core/cli.py
"""
RCON 命令行外壳 (CLI)

用法:
    rcon-core --config config.toml list
    RCON_HOST=127.0.0.1 RCON_PASSWORD=secret rcon-core
    python -m rcon_core --host 127.0.0.1 --password secret "say hi"

给出命令参数时依次执行并打印响应；否则进入交互模式，直到 EOF 或输入 exit。
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from . import __version__
from .config import (
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)
from .core import RconClient
from .exceptions import (
    AuthenticationError,
    ConfigError,
    ProtocolError,
    RconConnectionError,
    RconError,
)

logger = logging.getLogger("RconCLI")

EXIT_COMMANDS = ("exit", "quit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcon-core", description="RCON 远程控制台客户端"
    )
    parser.add_argument("commands", nargs="*", help="要依次执行的命令")
    parser.add_argument("-c", "--config", type=Path, help="TOML 配置文件路径")
    parser.add_argument("-p", "--profile", default="default", help="TOML 配置预设名")
    parser.add_argument("--env-file", type=Path, help=".env 文件路径")
    parser.add_argument("--host", help="服务器地址 (覆盖配置)")
    parser.add_argument("--port", type=int, help="服务器端口 (覆盖配置)")
    parser.add_argument("--password", help="RCON 密码 (覆盖配置)")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="输出更详细的日志 (-vv 为调试)"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_cli_config(args: argparse.Namespace) -> RconConfig:
    """为 CLI 加载配置。

    优先级: 命令行参数 > TOML 文件 (--config) > 环境变量 / .env 文件。
    """
    overrides = {
        key: value
        for key, value in (
            ("host", args.host),
            ("port", args.port),
            ("password", args.password),
        )
        if value is not None
    }

    if args.config:
        config = load_config_from_toml(args.config, args.profile)
    else:
        env_file = args.env_file
        if env_file is None and (Path.cwd() / ".env").exists():
            env_file = Path.cwd() / ".env"
        try:
            config = load_config_from_env(env_file)
        except ConfigError:
            if not overrides:
                raise
            logger.debug("环境变量配置不完整，仅使用命令行参数")
            return create_config_from_dict(overrides)

    if overrides:
        config = create_config_from_dict({**asdict(config), **overrides})
    return config


async def _prompt(text: str) -> str | None:
    """在线程中读取一行输入，EOF 时返回 None。"""
    try:
        return await asyncio.to_thread(input, text)
    except EOFError:
        return None


async def run(config: RconConfig, commands: list[str]) -> int:
    """登录并执行命令。

    Returns:
        int: 进程退出码。
    """
    async with RconClient(config) as client:
        if commands:
            for command in commands:
                response = await client.send_command(command)
                print(response.body)
            return 0

        print(f"已连接 {config.host}:{config.port}，输入 exit 退出。")
        while client.ready:
            line = await _prompt("> ")
            if line is None or line.strip().lower() in EXIT_COMMANDS:
                break
            if not line.strip():
                continue
            try:
                response = await client.send_command(line.strip())
            except ProtocolError as e:
                print(f"命令无法发送: {e}", file=sys.stderr)
                continue
            print(response.body)
    return 0


def main(argv: list[str] | None = None) -> None:
    """程序主入口点。"""
    args = build_parser().parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_cli_config(args)
        logger.debug(f"配置加载完成: {config!r}")
        code = asyncio.run(run(config, args.commands))
    except ConfigError as ce:
        logger.critical(f"配置错误: {ce}")
        code = 1
    except AuthenticationError as ae:
        logger.critical(f"认证被拒绝: {ae}")
        code = 1
    except RconConnectionError as ne:
        logger.critical(f"连接异常: {ne}")
        code = 1
    except RconError as err:
        logger.critical(f"运行异常: {err}")
        code = 1
    except KeyboardInterrupt:
        logger.info("收到用户中断信号 (Ctrl+C)，准备退出...")
        code = 130

    sys.exit(code)


if __name__ == "__main__":
    main()
