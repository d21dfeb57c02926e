"""Core: config, constants, composition root and runtime lifespan."""

from taskflow.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
