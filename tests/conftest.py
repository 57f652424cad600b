"""Shared test configuration."""

pytest_plugins = ["pytester", "flaky_harness.plugin"]
