"""Food Connect: community membership, chat and polls."""

__version__ = "0.1.0"
