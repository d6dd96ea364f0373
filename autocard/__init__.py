"""AutoCard - render social media cards from structured content."""

__version__ = "0.1.0"
