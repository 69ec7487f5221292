"""Operator maintenance jobs."""
