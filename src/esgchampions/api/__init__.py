"""REST API for the ESG Champions engine."""
from .app import create_app

__all__ = ["create_app"]
