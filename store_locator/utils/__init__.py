"""Utility functions for store identity hashing."""

from .hashing import assign_identity, compute_identity

__all__ = [
    "assign_identity",
    "compute_identity",
]
