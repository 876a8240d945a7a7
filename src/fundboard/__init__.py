"""Yield fund dashboard: backend-for-frontend routes and client session layer."""

__version__ = "0.1.0"
