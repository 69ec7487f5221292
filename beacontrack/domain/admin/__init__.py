"""Admin domain: authenticated principals and elevated roles."""
