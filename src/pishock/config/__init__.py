"""Configuration management for pishock.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for the user id and token.
"""

from pishock.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
