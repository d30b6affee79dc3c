"""Configuration for the ESG Champions engine."""
from .settings import ChampionsConfig, configure_logging, get_config, init_config

__all__ = [
    "ChampionsConfig",
    "configure_logging",
    "get_config",
    "init_config",
]
