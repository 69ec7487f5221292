"""Bearer-token verification and request authentication."""
