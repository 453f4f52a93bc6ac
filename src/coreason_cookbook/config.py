# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

import os
from typing import Any

from loguru import logger
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from coreason_cookbook.retry import RetryPolicy

# Config field -> conventional variable used by each provider's own SDK
SECRET_ENV_VARS: dict[str, str] = {
    "e2b_api_key": "E2B_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
    "benchify_api_key": "BENCHIFY_API_KEY",
}


class SecretsSettingsSource(PydanticBaseSettingsSource):
    """
    Custom Pydantic Settings Source that reads provider API keys from their
    unprefixed environment variables (``OPENAI_API_KEY`` and friends).
    """

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        # Unused because __call__ returns the full dict, but required by the ABC.
        return None, field_name, False  # pragma: no cover

    def __call__(self) -> dict[str, Any]:
        secrets: dict[str, Any] = {}
        for field, key in SECRET_ENV_VARS.items():
            val = os.getenv(key)
            if val:
                secrets[field] = val
            else:
                logger.debug(f"Secret {key} not found in environment.")
        return secrets


class CookbookConfig(BaseSettings):
    """
    Configuration for the generation pipeline and its collaborators.
    """

    # LLM
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    generation_model: str = "gpt-4o"
    generation_temperature: float = 0.7
    edit_model: str = "gpt-4o-mini"
    edit_temperature: float = 0.3

    # Fixer
    benchify_api_key: str | None = None
    benchify_api_url: str = "https://api.benchify.com/v1"
    fixer_timeout: float = 120.0

    # Sandbox
    e2b_api_key: str | None = None
    sandbox_template: str = "vite-support"
    sandbox_app_dir: str = "/app"
    dev_server_port: int = 5173
    command_timeout: float = 60.0
    build_check_seconds: int = 5
    hot_reload_delay: float = 1.0

    # Packages preinstalled in the sandbox template
    base_packages: set[str] = {
        "react",
        "react-dom",
        "@vitejs/plugin-react",
        "tailwindcss",
        "@tailwindcss/vite",
        "typescript",
        "vite",
    }

    fresh_health_policy: RetryPolicy = RetryPolicy(max_attempts=20, interval=0.25, command_timeout=3.0)
    update_health_policy: RetryPolicy = RetryPolicy(max_attempts=10, interval=0.5, command_timeout=3.0)
    subscribe_poll_policy: RetryPolicy = RetryPolicy(max_attempts=20, interval=0.05)

    # Streaming
    stream_keepalive_seconds: float = 15.0

    model_config = SettingsConfigDict(
        env_prefix="COREASON_COOKBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            SecretsSettingsSource(settings_cls),
            file_secret_settings,
        )
