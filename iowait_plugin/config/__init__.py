"""Configuration models for the plugin process."""

from .models import DEFAULT_SOCKET_PATH, PluginSettings

__all__ = ["DEFAULT_SOCKET_PATH", "PluginSettings"]
