"""
Configuration package for the StudentNest engine.

Holds the environment settings consumed by the database, logging
and payment verification layers.
"""

from studentnest.config.settings import Settings, get_settings, settings

__all__ = ['Settings', 'get_settings', 'settings']
