"""Core infrastructure: logging, configuration, constants."""
