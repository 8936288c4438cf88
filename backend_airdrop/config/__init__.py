"""
Configuration management for Backend Airdrop.

Loads settings and eligibility requirements from environment variables,
the project .env file, and an optional requirements JSON file.
"""

from backend_airdrop.config.settings import Settings, get_settings  # noqa: F401
from backend_airdrop.config.requirements import load_requirements  # noqa: F401

__all__ = ["Settings", "get_settings", "load_requirements"]
