"""Rental marketplace booking backend."""
