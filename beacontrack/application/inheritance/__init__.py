"""Notification-point inheritance."""
