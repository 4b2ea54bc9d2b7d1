"""
Configuration package for the Project Contribution service.
"""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
