"""Integrations with third-party documentation tools."""
