"""Configuration management for the chat streaming client."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

from chatstream.chat.models import ClientConfig

BASE_URL_ENV = "CHATSTREAM_BASE_URL"


class Configuration:
    """Manages configuration and environment variables for the chat client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for overrides
        self.config_path = config_path or os.path.join(
            os.path.dirname(__file__), "config.yaml"
        )
        self._config = self._load_yaml_config(self.config_path)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    def _load_yaml_config(config_path: str) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary.

        Returns:
            The complete configuration dictionary.
        """
        return self._config

    def get_client_config(self) -> dict[str, Any]:
        """Get HTTP client configuration for the chat endpoint.

        ``CHATSTREAM_BASE_URL`` in the environment takes precedence over the
        YAML ``base_url``.

        Returns:
            HTTP client configuration dictionary with validated values.

        Raises:
            ValueError: If required client parameters are missing or invalid.
        """
        client_config = dict(self._config.get("chat", {}).get("client", {}))

        env_base_url = os.getenv(BASE_URL_ENV)
        if env_base_url:
            client_config["base_url"] = env_base_url

        # Required configuration keys
        required_keys = [
            "base_url", "endpoint", "connect_timeout", "read_timeout",
            "write_timeout", "pool_timeout",
        ]
        for key in required_keys:
            if key not in client_config:
                raise ValueError(
                    f"chat.client.{key} must be explicitly configured "
                    "in config.yaml"
                )

        if not client_config["base_url"]:
            raise ValueError("chat.client.base_url must not be empty")
        if not str(client_config["endpoint"]).startswith("/"):
            raise ValueError("chat.client.endpoint must start with '/'")

        for key in ["connect_timeout", "read_timeout", "write_timeout", "pool_timeout"]:
            if client_config[key] <= 0:
                raise ValueError(f"chat.client.{key} must be positive")

        return client_config

    def get_stream_config(self) -> dict[str, Any]:
        """Get stream decoding configuration from YAML.

        Returns:
            Stream configuration dictionary with defaults applied.

        Raises:
            ValueError: If a stream parameter is invalid.
        """
        stream_config = self._config.get("chat", {}).get("stream", {}) or {}

        chunk_size = stream_config.get("chunk_size")
        if chunk_size is not None and (
            not isinstance(chunk_size, int) or chunk_size < 1
        ):
            raise ValueError("chat.stream.chunk_size must be a positive integer")

        keep_content = stream_config.get("keep_content_before_error", False)
        if not isinstance(keep_content, bool):
            raise ValueError(
                "chat.stream.keep_content_before_error must be a boolean"
            )

        return {
            "chunk_size": chunk_size,
            "encoding": stream_config.get("encoding", "utf-8"),
            "keep_content_before_error": keep_content,
        }

    def get_request_defaults(self) -> dict[str, Any]:
        """Get default request fields from YAML.

        Returns:
            Request defaults dictionary.
        """
        return self._config.get("chat", {}).get("request", {}) or {}

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        return self._config.get("logging", {})

    def build_client_config(self) -> ClientConfig:
        """Assemble the ClientConfig used by StreamChatClient."""
        client_config = self.get_client_config()
        stream_config = self.get_stream_config()

        return ClientConfig(
            base_url=client_config["base_url"],
            endpoint=client_config["endpoint"],
            connect_timeout=float(client_config["connect_timeout"]),
            read_timeout=float(client_config["read_timeout"]),
            write_timeout=float(client_config["write_timeout"]),
            pool_timeout=float(client_config["pool_timeout"]),
            chunk_size=stream_config["chunk_size"],
            encoding=stream_config["encoding"],
            keep_content_before_error=stream_config["keep_content_before_error"],
            system_message=self.get_request_defaults().get("system_message"),
        )
