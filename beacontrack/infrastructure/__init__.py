"""Infrastructure layer: adapters for the document store, identity and configuration."""
