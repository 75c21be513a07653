"""Explicit artifact cleanup requests."""
