"""Device domain: beacon hardware and its binding state."""
