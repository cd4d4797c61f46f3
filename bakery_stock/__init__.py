"""Bakery raw-material stock ledger."""
