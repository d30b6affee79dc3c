"""Configuration management for the ESG Champions engine."""
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChampionsConfig(BaseSettings):
    """Main configuration for the ESG Champions review engine.

    Configuration can be loaded from:
    1. Environment variables (prefixed with CHAMPIONS_)
    2. YAML configuration file (champions.yaml)
    3. Default values
    """

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host address")
    api_port: int = Field(default=8000, description="API port")

    # Database Configuration
    storage: str = Field(default="sqlite", description="Storage backend (sqlite or postgresql)")
    db_path: str = Field(default="./champions.db", description="Database file path for SQLite")
    db_url: Optional[str] = Field(default=None, description="Database URL for PostgreSQL")

    # Credit Configuration
    review_credit: int = Field(
        default=10, ge=0, description="Credits awarded per accepted indicator review"
    )
    upvote_credit: int = Field(
        default=2, ge=0, description="Credits attributed to each upvote received"
    )
    comment_credit: int = Field(
        default=2, ge=0, description="Credits awarded per comment on another champion's review"
    )

    # Notification Configuration
    notification_limit: int = Field(
        default=20, ge=1, le=200, description="Maximum notifications returned per listing"
    )
    demo_notifications: bool = Field(
        default=True, description="Show demo notifications to champions with none persisted"
    )
    read_state_limit: int = Field(
        default=500, ge=1, description="Notification ids remembered as read per champion"
    )

    # Ranking Configuration
    leaderboard_limit: int = Field(default=50, ge=1, description="Default leaderboard size")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_file: Optional[str] = Field(default=None, description="Log file path")

    model_config = SettingsConfigDict(
        env_prefix="CHAMPIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    def get_database_url(self) -> str:
        """Get the database URL based on configuration.

        Returns:
            Database URL string
        """
        if self.db_url:
            return self.db_url

        if self.storage == "sqlite":
            if self.db_path == ":memory:":
                return "sqlite+aiosqlite:///:memory:"
            # Ensure path is absolute
            db_path = Path(self.db_path)
            if not db_path.is_absolute():
                db_path = Path.cwd() / db_path
            return f"sqlite+aiosqlite:///{db_path}"
        elif self.storage == "postgresql":
            raise ValueError(
                "PostgreSQL selected but db_url not provided. "
                "Set CHAMPIONS_DB_URL or db_url in config file."
            )
        else:
            raise ValueError(f"Unknown storage backend: {self.storage}")

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "ChampionsConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ChampionsConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Invalid configuration file: {config_path}")

        return cls(**data)

    def to_yaml(self, config_path: str | Path) -> None:
        """Save configuration to YAML file."""
        config_path = Path(config_path)

        # Convert to dict and remove None values
        data = self.model_dump(exclude_none=True)

        with open(config_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def create_default_config(cls, config_path: str | Path) -> "ChampionsConfig":
        """Create a default configuration file."""
        config = cls()
        config.to_yaml(config_path)
        return config


# Global configuration instance
_config: Optional[ChampionsConfig] = None


def init_config(config_path: Optional[str | Path] = None) -> ChampionsConfig:
    """Initialize the global configuration.

    Args:
        config_path: Optional path to YAML configuration file.
                    If not provided, uses environment variables and defaults.

    Returns:
        ChampionsConfig instance
    """
    global _config

    if config_path:
        _config = ChampionsConfig.from_yaml(config_path)
    else:
        # Try to load from default location
        default_paths = [
            Path("champions.yaml"),
            Path("champions.yml"),
            Path(".champions.yaml"),
            Path.home() / ".champions" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                _config = ChampionsConfig.from_yaml(path)
                return _config

        # No config file found, use defaults and env vars
        _config = ChampionsConfig()

    return _config


def get_config() -> ChampionsConfig:
    """Get the global configuration instance, initializing it on first use."""
    if _config is None:
        return init_config()
    return _config


def configure_logging(config: ChampionsConfig) -> None:
    """Apply the configured log level and optional log file to the root logger."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
