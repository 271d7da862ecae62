#!/usr/bin/env python3
"""
Test explicit configuration requirements.
"""

import pytest
import yaml

from chatstream.config import BASE_URL_ENV, Configuration

VALID_CONFIG = {
    "chat": {
        "client": {
            "base_url": "http://localhost:5000",
            "endpoint": "/api/chat",
            "connect_timeout": 5,
            "read_timeout": 30,
            "write_timeout": 5,
            "pool_timeout": 5,
        },
        "stream": {
            "chunk_size": 1024,
            "encoding": "utf-8",
            "keep_content_before_error": True,
        },
        "request": {"system_message": "You are terse."},
    },
    "logging": {"level": "DEBUG"},
}


@pytest.fixture(autouse=True)
def clear_base_url_override(monkeypatch):
    monkeypatch.delenv(BASE_URL_ENV, raising=False)


def write_config(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


def without(section: str, key: str) -> dict:
    data = yaml.safe_load(yaml.dump(VALID_CONFIG))
    del data["chat"][section][key]
    return data


def test_packaged_config_loads():
    """The config.yaml shipped with the package is valid."""
    config = Configuration()
    client_config = config.build_client_config()

    assert client_config.endpoint == "/api/chat"
    assert client_config.keep_content_before_error is False


def test_build_client_config(tmp_path):
    config = Configuration(write_config(tmp_path, VALID_CONFIG))
    client_config = config.build_client_config()

    assert client_config.base_url == "http://localhost:5000"
    assert client_config.read_timeout == 30.0
    assert client_config.chunk_size == 1024
    assert client_config.keep_content_before_error is True
    assert client_config.system_message == "You are terse."
    assert config.get_logging_config() == {"level": "DEBUG"}


def test_env_overrides_base_url(tmp_path, monkeypatch):
    monkeypatch.setenv(BASE_URL_ENV, "http://chat.internal:8080")
    config = Configuration(write_config(tmp_path, VALID_CONFIG))

    assert config.get_client_config()["base_url"] == "http://chat.internal:8080"


@pytest.mark.parametrize("key", ["endpoint", "read_timeout", "pool_timeout"])
def test_client_keys_require_explicit_config(tmp_path, key):
    config = Configuration(write_config(tmp_path, without("client", key)))

    with pytest.raises(ValueError, match=f"chat.client.{key} must be explicitly"):
        config.get_client_config()


def test_invalid_timeout(tmp_path):
    data = yaml.safe_load(yaml.dump(VALID_CONFIG))
    data["chat"]["client"]["connect_timeout"] = 0
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="connect_timeout must be positive"):
        config.get_client_config()


def test_endpoint_must_be_absolute_path(tmp_path):
    data = yaml.safe_load(yaml.dump(VALID_CONFIG))
    data["chat"]["client"]["endpoint"] = "api/chat"
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="must start with"):
        config.get_client_config()


def test_stream_defaults(tmp_path):
    data = yaml.safe_load(yaml.dump(VALID_CONFIG))
    del data["chat"]["stream"]
    config = Configuration(write_config(tmp_path, data))

    assert config.get_stream_config() == {
        "chunk_size": None,
        "encoding": "utf-8",
        "keep_content_before_error": False,
    }


@pytest.mark.parametrize("chunk_size", [0, -5, "big"])
def test_invalid_chunk_size(tmp_path, chunk_size):
    data = yaml.safe_load(yaml.dump(VALID_CONFIG))
    data["chat"]["stream"]["chunk_size"] = chunk_size
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="chunk_size must be a positive integer"):
        config.get_stream_config()


def test_config_must_be_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="Config file must be YAML dict"):
        Configuration(str(path))
