"""Device binding lifecycle."""
