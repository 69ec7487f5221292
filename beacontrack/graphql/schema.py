"""Main GraphQL schema factory.

Usage:
    from beacontrack.graphql.schema import create_schema
    schema = create_schema()
"""

import strawberry

from beacontrack.graphql.resolvers.mutations import BindingMutations
from beacontrack.graphql.resolvers.queries import DeviceQueries


@strawberry.type
class Query(DeviceQueries):
    """Root query."""


@strawberry.type
class Mutation(BindingMutations):
    """Root mutation."""


def create_schema() -> strawberry.Schema:
    """Create Strawberry schema with all resolvers."""
    return strawberry.Schema(query=Query, mutation=Mutation)
