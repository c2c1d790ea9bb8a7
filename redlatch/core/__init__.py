"""Core configuration and logging for redlatch."""
