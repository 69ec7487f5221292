"""GraphQL transport (strawberry) for the binding operations."""
