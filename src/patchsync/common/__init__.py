"""Shared helpers that do not belong to a specific layer."""
