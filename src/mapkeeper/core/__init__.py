"""Core services: archives, filesystem helpers, progress streams and maps."""
