"""Infrastructure for Hospital-Records: configuration, settings and logging."""
