# tests/test_config.py
"""
测试配置的加载与校验。
覆盖 src/rcon_core/config.py
"""

import pytest

from rcon_core.config import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_TIMEOUT,
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)
from rcon_core.exceptions import ConfigError

valid_config_dict = {
    "host": "mc.example.org",
    "password": "hunter2",
}


@pytest.fixture
def clean_env(monkeypatch):
    """清除所有 RCON_ 前缀的环境变量，测试结束后 (含 .env 写入的值) 一并还原"""
    for key in ("HOST", "PORT", "PASSWORD", "TIMEOUT", "CONNECT_TIMEOUT"):
        # 先 setenv 再 delenv，确保 undo 时该变量被删除
        monkeypatch.setenv(f"RCON_{key}", "")
        monkeypatch.delenv(f"RCON_{key}")
    return monkeypatch


def test_config_happy_path():
    config = create_config_from_dict(valid_config_dict.copy())

    assert isinstance(config, RconConfig)
    assert config.host == "mc.example.org"
    assert config.password == "hunter2"
    assert config.server_address == ("mc.example.org", 25575)


def test_config_default_values():
    config = create_config_from_dict(valid_config_dict.copy())

    assert config.port == 25575
    assert config.timeout == DEFAULT_TIMEOUT
    assert config.connect_timeout == DEFAULT_CONNECT_TIMEOUT


@pytest.mark.parametrize("missing", ["host", "password"])
def test_config_missing_key(missing):
    config_dict = valid_config_dict.copy()
    del config_dict[missing]

    with pytest.raises(ConfigError) as e:
        create_config_from_dict(config_dict)
    assert missing in str(e.value)


def test_config_empty_password_is_missing():
    with pytest.raises(ConfigError):
        create_config_from_dict({"host": "localhost", "password": ""})


@pytest.mark.parametrize("password", ["p\u00e4sswort", "pass\x00word"])
def test_config_password_must_be_encodable(password):
    with pytest.raises(ConfigError, match="密码"):
        create_config_from_dict({**valid_config_dict, "password": password})


@pytest.mark.parametrize("port", ["abc", 0, 70000, -1])
def test_config_invalid_port(port):
    with pytest.raises(ConfigError, match="端口"):
        create_config_from_dict({**valid_config_dict, "port": port})


def test_config_port_from_string():
    assert create_config_from_dict({**valid_config_dict, "port": "27015"}).port == 27015


@pytest.mark.parametrize(
    "raw, expected",
    [("2.5", 2.5), (3, 3.0), ("0", None), ("none", None), (None, None)],
)
def test_config_timeout_parsing(raw, expected):
    config = create_config_from_dict({**valid_config_dict, "timeout": raw})
    assert config.timeout == expected


@pytest.mark.parametrize("raw", ["-1", "soon"])
def test_config_invalid_timeout(raw):
    with pytest.raises(ConfigError, match="超时"):
        create_config_from_dict({**valid_config_dict, "connect_timeout": raw})


def test_config_repr_hides_password():
    config = create_config_from_dict(valid_config_dict.copy())
    assert "hunter2" not in repr(config)
    assert "******" in repr(config)


def test_config_is_frozen():
    config = create_config_from_dict(valid_config_dict.copy())
    with pytest.raises(AttributeError):
        config.port = 1


# =========================================================================
# TOML
# =========================================================================


def test_load_toml_profile(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[profile.default]\nhost = "a.example"\npassword = "pa"\n\n'
        '[profile.backup]\nhost = "b.example"\nport = 25580\npassword = "pb"\n',
        encoding="utf-8",
    )

    assert load_config_from_toml(path).host == "a.example"
    backup = load_config_from_toml(path, profile="backup")
    assert (backup.host, backup.port) == ("b.example", 25580)


def test_load_toml_missing_profile(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[profile.main]\nhost = "a"\npassword = "p"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="profile.default"):
        load_config_from_toml(path)


def test_load_toml_rcon_section(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[rcon]\nhost = "r.example"\npassword = "p"\ntimeout = 1.5\n', encoding="utf-8"
    )

    config = load_config_from_toml(path, profile="ignored")
    assert config.host == "r.example"
    assert config.timeout == 1.5


def test_load_toml_root_level(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('host = "root.example"\npassword = "p"\n', encoding="utf-8")
    assert load_config_from_toml(path).host == "root.example"


def test_load_toml_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="未找到"):
        load_config_from_toml(tmp_path / "nope.toml")


def test_load_toml_invalid_syntax(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("host = \n", encoding="utf-8")
    with pytest.raises(ConfigError, match="TOML"):
        load_config_from_toml(path)


# =========================================================================
# Env / .env
# =========================================================================


def test_load_env(clean_env):
    clean_env.setenv("RCON_HOST", "env.example")
    clean_env.setenv("RCON_PORT", "25576")
    clean_env.setenv("RCON_PASSWORD", "envpass")

    config = load_config_from_env()
    assert (config.host, config.port, config.password) == ("env.example", 25576, "envpass")


def test_load_env_nothing_set(clean_env):
    with pytest.raises(ConfigError, match="RCON_"):
        load_config_from_env()


def test_load_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "RCON_HOST=dotenv.example\nRCON_PASSWORD=dotpass\nRCON_TIMEOUT=0\n",
        encoding="utf-8",
    )

    config = load_config_from_env(env_file)
    assert config.host == "dotenv.example"
    assert config.password == "dotpass"
    assert config.timeout is None


def test_load_env_file_missing(clean_env, tmp_path):
    with pytest.raises(ConfigError, match=".env"):
        load_config_from_env(tmp_path / "missing.env")
