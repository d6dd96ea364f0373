"""
Shared types used across modules.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Per-request metadata carried through logging."""
    request_id: str
    actor: str = "anonymous"
