"""Core infrastructure: logging, configuration and the exception hierarchy."""
