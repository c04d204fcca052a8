"""Application configuration."""

from .settings import Settings, describe_services, get_settings, settings

__all__ = ["Settings", "describe_services", "get_settings", "settings"]
