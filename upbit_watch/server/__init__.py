"""HTTP liveness endpoint."""

from .keepalive import KeepAliveServer, create_keepalive_app

__all__ = ["KeepAliveServer", "create_keepalive_app"]
