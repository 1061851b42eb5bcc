"""Configuration helpers."""

from .settings import MirrorApiSettings, MirrorSettings, get_api_settings, get_settings

__all__ = ["MirrorApiSettings", "MirrorSettings", "get_api_settings", "get_settings"]
