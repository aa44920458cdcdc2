"""
Expense Tracker Core.

Data-access layer for a personal-finance tracker: pluggable storage
backends (in-memory, local key-value, Supabase), per-entity repositories,
a repository handler facade, and the ``DatabaseManager`` that keeps the
local and cloud stores reconciled across sign-in and sign-out.
"""

__version__ = "1.0.0"
