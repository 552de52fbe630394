"""
callscreen - decide whether an incoming call is let through or silenced.

This package normalizes caller numbers with `phonenumbers`, evaluates a
configurable chain of heuristics (contacts, call/message history, number
groups, repeated attempts, allow-list) against pluggable data sources, and
returns an allow/silence verdict.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
