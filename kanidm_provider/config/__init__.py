"""Configuration module."""
from .settings import ClientSettings, load_settings, DEFAULT_TIMEOUT

__all__ = ["ClientSettings", "load_settings", "DEFAULT_TIMEOUT"]
