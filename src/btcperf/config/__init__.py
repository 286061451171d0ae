"""
Configuration Module

Provides centralized configuration management using Pydantic Settings.
Values come from environment variables or a local ``.env`` file.
"""

from btcperf.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
