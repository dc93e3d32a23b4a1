# tests/test_config.py
import os
from pathlib import Path

import pytest

from rcon_core import ConfigError
from rcon_core.config import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
    read_env,
)


@pytest.fixture
def clean_env(mocker):
    """清空环境变量，测试结束后自动恢复"""
    mocker.patch.dict(os.environ, {}, clear=True)


# --- Factory 测试 (核心逻辑) ---


def test_create_with_defaults():
    """只提供密码时使用默认的主机、端口与超时"""
    config = create_config_from_dict({"password": "p"})

    assert config.host == "localhost"
    assert config.port == 27015
    assert config.connect_timeout == DEFAULT_CONNECT_TIMEOUT
    assert config.read_timeout == DEFAULT_READ_TIMEOUT
    assert config.address == "localhost:27015"


def test_create_from_strings():
    """环境变量传入的都是字符串，需要转换类型"""
    config = create_config_from_dict(
        {"host": "mc.local", "port": "25575", "password": "p", "read_timeout": "5"}
    )
    assert config.port == 25575
    assert config.read_timeout == 5.0


def test_create_address_overrides_host_port():
    config = create_config_from_dict(
        {"host": "ignored", "port": 1, "address": "10.0.0.2:25575", "password": "p"}
    )
    assert (config.host, config.port) == ("10.0.0.2", 25575)


def test_create_address_without_port_keeps_port():
    config = create_config_from_dict({"address": "10.0.0.2", "port": 25575, "password": "p"})
    assert (config.host, config.port) == ("10.0.0.2", 25575)


def test_create_missing_password():
    with pytest.raises(ConfigError, match="配置缺失"):
        create_config_from_dict({"host": "h"})


@pytest.mark.parametrize("port", ["abc", 0, 70000])
def test_create_invalid_port(port):
    with pytest.raises(ConfigError):
        create_config_from_dict({"port": port, "password": "p"})


def test_create_invalid_address():
    with pytest.raises(ConfigError, match="地址格式无效"):
        create_config_from_dict({"address": "host:port", "password": "p"})


@pytest.mark.parametrize("timeout", ["soon", 0, -1])
def test_create_invalid_timeout(timeout):
    with pytest.raises(ConfigError):
        create_config_from_dict({"password": "p", "connect_timeout": timeout})


def test_repr_hides_password():
    config = create_config_from_dict({"password": "hunter2"})
    assert "hunter2" not in repr(config)


# --- Loader 测试 (I/O) ---


def test_load_toml_rcon_section(tmp_path):
    """测试从 TOML 文件的 [rcon] 节加载"""
    toml_content = """
    [rcon]
    host = "toml.host"
    port = 25575
    password = "123"
    """
    f = tmp_path / "config.toml"
    f.write_text(toml_content, encoding="utf-8")

    config = load_config_from_toml(f)
    assert config.host == "toml.host"
    assert config.port == 25575
    assert config.password == "123"


def test_load_toml_profiles(tmp_path):
    toml_content = """
    [profile.default]
    password = "a"

    [profile.survival]
    address = "mc.example.com:25575"
    password = "b"
    """
    f = tmp_path / "config.toml"
    f.write_text(toml_content, encoding="utf-8")

    assert load_config_from_toml(f).password == "a"

    survival = load_config_from_toml(f, profile="survival")
    assert survival.host == "mc.example.com"
    assert survival.password == "b"

    with pytest.raises(ConfigError, match="未找到预设"):
        load_config_from_toml(f, profile="creative")


def test_load_toml_root_keys(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text('password = "root"\nport = 27016\n', encoding="utf-8")

    config = load_config_from_toml(f)
    assert config.password == "root"
    assert config.port == 27016


def test_load_toml_invalid(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text("password = ", encoding="utf-8")
    with pytest.raises(ConfigError, match="读取 TOML 失败"):
        load_config_from_toml(f)


def test_load_toml_not_found():
    """测试文件不存在"""
    with pytest.raises(ConfigError, match="配置文件未找到"):
        load_config_from_toml(Path("non_existent.toml"))


def test_load_env(clean_env, tmp_path, monkeypatch):
    monkeypatch.setenv("RCON_HOST", "env.host")
    monkeypatch.setenv("RCON_PORT", "25575")
    monkeypatch.setenv("RCON_PASSWORD", "envpass")

    config = load_config_from_env(tmp_path / "missing.env")
    assert config.host == "env.host"
    assert config.port == 25575
    assert config.password == "envpass"


def test_load_dotenv_file(clean_env, tmp_path):
    """.env 文件中的变量会被加载"""
    dotenv = tmp_path / ".env"
    dotenv.write_text("RCON_PASSWORD=fromfile\nRCON_READ_TIMEOUT=3\n", encoding="utf-8")

    config = load_config_from_env(dotenv)
    assert config.password == "fromfile"
    assert config.read_timeout == 3.0


def test_dotenv_does_not_override_environment(clean_env, tmp_path, monkeypatch):
    monkeypatch.setenv("RCON_PASSWORD", "fromenv")
    dotenv = tmp_path / ".env"
    dotenv.write_text("RCON_PASSWORD=fromfile\n", encoding="utf-8")

    assert read_env(dotenv)["password"] == "fromenv"


def test_load_env_empty(clean_env, tmp_path):
    empty = tmp_path / ".env"
    empty.write_text("", encoding="utf-8")

    with pytest.raises(ConfigError, match="RCON_"):
        load_config_from_env(empty)
