"""
Configuration package for the inventory and pricing backend.

Contains environment settings and logging configuration.
"""

from app.config.settings import settings, get_settings

__all__ = ['settings', 'get_settings']
