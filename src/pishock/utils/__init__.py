"""Shared helpers for pishock."""
