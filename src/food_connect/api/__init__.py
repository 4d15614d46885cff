"""HTTP API for Food Connect."""
