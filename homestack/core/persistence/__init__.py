"""Persistence — the append-only audit ledger."""
