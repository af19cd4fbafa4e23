"""
Configuration management for Node Medic.

Resolves settings from flags, environment variables (and .env), and an
optional YAML file. Exposes a single frozen Settings object.
"""

from node_medic.config.settings import Settings, load_settings  # noqa: F401

__all__ = ["Settings", "load_settings"]
