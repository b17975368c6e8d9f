"""Reconciliation engine: reconcilers, work queue and supporting algorithms."""
