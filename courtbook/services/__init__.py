"""Reservation engine services."""
