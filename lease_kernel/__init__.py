"""
Lease Kernel - annuity lifecycle core

Tracks multi-year rental contracts with:
- Deterministic intermediate-year annuity generation
- Reconciliation that preserves payment history
- Monotonic payment watermark
- Notify-once ledger for expiry reminders
"""

__version__ = "0.1.0"
