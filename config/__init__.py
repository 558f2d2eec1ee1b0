"""Configuration package for proctored test sessions."""
from .settings import Settings, settings

__all__ = ["Settings", "settings"]
