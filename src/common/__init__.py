"""Shared helpers: HTTP access to the lookup service and logging utilities."""
