"""User interfaces for the reference documentation build."""
