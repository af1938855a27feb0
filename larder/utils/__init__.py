"""Helpers shared by the engine modules."""
