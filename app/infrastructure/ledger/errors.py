"""Ledger errors."""


class LedgerError(Exception):
    """The ledger could not be read or written."""
