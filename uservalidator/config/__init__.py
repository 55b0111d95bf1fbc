"""Configuration module for the user request validator."""
from .settings import ValidatorConfig, load_settings

__all__ = ["ValidatorConfig", "load_settings"]
