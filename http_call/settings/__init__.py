"""Environment settings loading."""

from .app import HttpCallSettings, get_settings


__all__ = ["HttpCallSettings", "get_settings"]
