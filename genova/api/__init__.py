"""REST API for the GENOVA marketplace."""

from .routes import create_app

__all__ = ["create_app"]
