"""Shared helpers with no domain state."""
