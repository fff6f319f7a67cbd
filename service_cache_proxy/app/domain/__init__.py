"""
Domain utilities for the cache proxy.
"""

from .auth_gate import AuthDecision, AuthOutcome, AuthorizationGate

__all__ = [
    "AuthDecision",
    "AuthOutcome",
    "AuthorizationGate",
]
