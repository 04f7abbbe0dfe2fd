"""Core utilities - configuration, logging, errors, validation and auth."""
