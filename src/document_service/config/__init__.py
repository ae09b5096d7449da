"""Configuration module for Document Service."""

from .settings import get_settings, Settings

__all__ = ["get_settings", "Settings"]
