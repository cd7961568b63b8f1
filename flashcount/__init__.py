"""Recurring bills, budget projection and spending reports for a personal ledger."""

__version__ = "0.1.0"
