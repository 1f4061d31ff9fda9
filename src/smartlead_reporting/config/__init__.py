"""Configuration for Smartlead reporting."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
