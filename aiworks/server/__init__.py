"""HTTP API for AIWorks."""

from aiworks.server.app import create_app

__all__ = ["create_app"]
