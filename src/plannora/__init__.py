"""Plannora — event planning backend.

Accounts, cookie/bearer token sessions, and per-user event planning
records (budget, guests, selected service providers).
"""

__version__ = "0.1.0"
