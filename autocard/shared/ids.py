"""
Identifier generation.
"""

import uuid


def generate_id(prefix: str) -> str:
    """Generate a prefixed random identifier, e.g. ``req_3f9a...``."""
    return f"{prefix}_{uuid.uuid4().hex}"


def generate_request_id() -> str:
    return generate_id("req")


def short_token(length: int = 6) -> str:
    """Short random hex token for human-facing names."""
    return uuid.uuid4().hex[:length]
