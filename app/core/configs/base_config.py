import json
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Settings loaded from the environment and an optional `.env` file."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=True,
    )

    @staticmethod
    def _parse_list(value: Any) -> Any:
        """Accept a JSON list or a comma-separated string for list settings."""
        if not isinstance(value, str):
            return value
        value = value.strip()
        if not value:
            return []
        if value.startswith('['):
            return json.loads(value)
        return [item.strip() for item in value.split(',') if item.strip()]
