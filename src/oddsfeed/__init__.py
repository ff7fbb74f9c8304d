"""Cached sports-odds feed with stale-on-error fallback."""

__version__ = "0.1.0"
