"""Upload handling and request-scoped reverse jobs."""
