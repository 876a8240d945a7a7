"""HTTP surface exposed to the dashboard UI."""

from fundboard.api.app import create_app

__all__ = ["create_app"]
