"""Logging for retry attempts."""
