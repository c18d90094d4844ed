"""Concrete adapters beyond the in-memory stubs."""
