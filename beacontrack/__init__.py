"""
Beacon device binding service.

Tracks proximity-beacon devices loaned to elders or map-app users,
archives their sighting history when ownership changes and keeps
tenant notification points inherited by each device in sync.

Structure:
- domain/: Entities, value objects, errors and repository ports
- application/: Binding lifecycle, archival pipeline, inheritance resolver
- infrastructure/: Configuration, logging, MongoDB and in-memory adapters
- graphql/: GraphQL API layer
"""

__version__ = "1.0.0"
