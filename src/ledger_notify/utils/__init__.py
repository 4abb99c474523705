"""Helpers: public URIs and JSON signing."""
