"""HTTP API for subtrack."""
