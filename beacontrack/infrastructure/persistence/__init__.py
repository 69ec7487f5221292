"""Persistence adapters: in-memory (tests, local runs) and MongoDB."""
