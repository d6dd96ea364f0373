"""Shared utilities: logging, errors, identifiers."""
