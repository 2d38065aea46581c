"""WebSocket host that relays a remote player against the house."""

from .server import TableServerError, TableSession, handle_connection, run_server

__all__ = ["TableServerError", "TableSession", "handle_connection", "run_server"]
