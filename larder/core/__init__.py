"""Reconciliation engine components."""
