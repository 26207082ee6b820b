"""Configuration package — environment-driven settings."""

from cronjobs.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
