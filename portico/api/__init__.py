"""HTTP API for Portico."""

from portico.api.app import create_app

__all__ = ["create_app"]
