"""Shared utilities: logging, errors, datetimes, validation."""
