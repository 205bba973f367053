"""Billing, stock and customer-ledger engine for a small wholesale shop."""

__version__ = "0.1.0"
