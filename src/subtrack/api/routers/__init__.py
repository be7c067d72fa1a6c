"""API routers for subtrack."""
