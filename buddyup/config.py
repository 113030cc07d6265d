"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
import os
from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .domain.exceptions import ConfigurationError

TOKEN_ENV_VAR = "SLACK_BOT_TOKEN"


class SlackConfig(BaseModel):
    """Slack Web API connection settings."""
    bot_token: str = ""  # Falls back to $SLACK_BOT_TOKEN
    timeout_seconds: float = 10
    max_concurrency: int = 8
    max_retries: int = 1

    @field_validator("timeout_seconds", "max_concurrency")
    @classmethod
    def validate_positive(cls, value):
        """Ensure timeouts and concurrency are positive."""
        if value <= 0:
            raise ValueError(f"must be greater than zero, got {value}")
        return value

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"max_retries must not be negative, got {value}")
        return value

    def resolve_bot_token(self) -> str:
        """
        Get the bot token from config or environment.

        Raises:
            ConfigurationError: If no token is configured anywhere
        """
        token = self.bot_token or os.environ.get(TOKEN_ENV_VAR, "")
        if not token:
            raise ConfigurationError(
                f"No Slack bot token configured. Set slack.bot_token or ${TOKEN_ENV_VAR}."
            )
        return token


class WorkflowConfig(BaseModel):
    """Configuration stored at the configure step, read at execute."""
    group_id: str

    @field_validator("group_id")
    @classmethod
    def validate_group_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("group_id must not be empty")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    slack: SlackConfig = Field(default_factory=SlackConfig)
    store_path: Path = Path("buddyup_store.json")
    log_level: str = "INFO"
    exclude_users: List[str] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept standard logging level names, case-insensitive."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("exclude_users")
    @classmethod
    def validate_exclude_users(cls, value: List[str]) -> List[str]:
        """Strip blanks and remove duplicates, preserving order."""
        seen: set[str] = set()
        deduped: List[str] = []
        for user_id in value:
            user_id = user_id.strip()
            if user_id and user_id not in seen:
                seen.add(user_id)
                deduped.append(user_id)
        return deduped

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the file is not valid YAML or fails validation
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
