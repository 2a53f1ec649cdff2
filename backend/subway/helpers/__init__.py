"""Helpers package."""
