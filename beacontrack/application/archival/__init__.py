"""Privacy-preserving activity archival."""
