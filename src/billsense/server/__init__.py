"""HTTP surface for billsense."""

from billsense.server.app import create_app

__all__ = ["create_app"]
