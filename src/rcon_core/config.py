"""
RCON 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (含 .env 文件) 或字典中加载配置。
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .exceptions import ConfigError
from .protocols.constants import DEFAULT_PORT

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0


@dataclass(frozen=True)
class RconConfig:
    """RconClient 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        host: RCON 服务器地址 (IP 或域名)。
        password: RCON 认证密码。
        port: RCON 服务器端口 (默认 25575)。
        timeout: 等待单个响应的秒数。为 None 时无限等待。
        connect_timeout: 建立 TCP 连接的超时秒数。为 None 时无限等待。
    """

    host: str
    password: str
    port: int = DEFAULT_PORT
    timeout: float | None = DEFAULT_TIMEOUT
    connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT

    @property
    def server_address(self) -> tuple[str, int]:
        """(host, port) 元组。"""
        return (self.host, self.port)

    def __repr__(self) -> str:
        """
        覆盖默认的 repr，隐藏密码字段，防止日志泄露敏感信息。
        """
        return (
            f"<{self.__class__.__name__} "
            f"server={self.host}:{self.port}, "
            f"password='******', "
            f"timeout={self.timeout}>"
        )


def create_config_from_dict(raw_data: dict[str, Any]) -> RconConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        RconConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """
    try:
        # --- 内部辅助函数 ---
        def _req(key: str) -> Any:
            """获取必要字段，缺失或为空则报错"""
            if key not in raw_data or raw_data[key] in (None, ""):
                raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
            return raw_data[key]

        def _get(key: str, default: Any) -> Any:
            """获取可选字段，缺失则使用默认值"""
            val = raw_data.get(key, default)
            return default if val == "" else val

        def _to_port(key: str) -> int:
            val = _get(key, DEFAULT_PORT)
            try:
                port = int(val)
            except (TypeError, ValueError):
                raise ConfigError(f"端口格式无效 '{key}': {val}")
            if not 0 < port < 65536:
                raise ConfigError(f"端口超出范围 '{key}': {port}")
            return port

        def _to_timeout(key: str, default: float) -> float | None:
            """解析超时秒数，0 或 none 表示不限时。"""
            val = _get(key, default)
            if val is None or str(val).strip().lower() in ("none", "off"):
                return None
            try:
                seconds = float(val)
            except (TypeError, ValueError):
                raise ConfigError(f"超时格式无效 '{key}': {val}")
            if seconds < 0:
                raise ConfigError(f"超时不能为负数 '{key}': {seconds}")
            return seconds or None

        password = str(_req("password"))
        if not password.isascii() or "\x00" in password:
            raise ConfigError("密码只能包含 ASCII 字符且不能含 NUL")

        # --- 构建对象 ---
        return RconConfig(
            host=str(_req("host")).strip(),
            password=password,
            port=_to_port("port"),
            timeout=_to_timeout("timeout", DEFAULT_TIMEOUT),
            connect_timeout=_to_timeout("connect_timeout", DEFAULT_CONNECT_TIMEOUT),
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def load_config_from_toml(file_path: Path, profile: str = "default") -> RconConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [rcon]: 单服务器配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    raw_config = {}

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]

    elif "rcon" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [rcon] 节，忽略 profile='{profile}'。")
        raw_config = data["rcon"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


def load_config_from_env(env_file: Path | None = None) -> RconConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    读取所有以 `RCON_` 开头的相关环境变量，并映射到配置字段。
    例如: `RCON_PASSWORD` -> `password`。

    Args:
        env_file: 可选的 .env 文件路径。若提供，则先将其加载进环境变量
            (已存在的环境变量会被覆盖)。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: .env 文件不存在，或未检测到任何相关环境变量。
    """
    if env_file is not None:
        env_file = Path(env_file)
        if not env_file.exists():
            raise ConfigError(f".env 文件未找到: {env_file}")
        load_dotenv(dotenv_path=env_file, override=True)
        logger.debug(f"已加载 .env 文件: {env_file}")

    # 字段映射表 (Config Field -> Env Suffix)
    env_map = {
        "host": "HOST",
        "port": "PORT",
        "password": "PASSWORD",
        "timeout": "TIMEOUT",
        "connect_timeout": "CONNECT_TIMEOUT",
    }

    raw_data = {}

    for cfg_key, env_suffix in env_map.items():
        val = os.environ.get(f"RCON_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 RCON_ 前缀的环境变量")

    return create_config_from_dict(raw_data)
