"""Shared HTTP middleware and error envelope."""
