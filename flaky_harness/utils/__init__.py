"""Shared utilities: the harness exception hierarchy."""
