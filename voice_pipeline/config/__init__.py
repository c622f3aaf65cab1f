"""
Configuration module for the voice-to-task pipeline.

Provides environment variable loading and validation.
"""

from .settings import Settings, get_settings, reset_settings

__all__ = ['Settings', 'get_settings', 'reset_settings']
