"""ASGI application: FastAPI + strawberry GraphQL.

Run with:
    uvicorn beacontrack.app:app --reload
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Final, Optional

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from strawberry.fastapi import GraphQLRouter

from beacontrack import __version__
from beacontrack.application.services import BindingServices, build_services
from beacontrack.graphql.context import GraphQLContext
from beacontrack.graphql.schema import create_schema
from beacontrack.infrastructure.auth.middleware import AuthMiddleware
from beacontrack.infrastructure.config import get_archival_page_size
from beacontrack.infrastructure.logging_config import configure_logging
from beacontrack.infrastructure.persistence.factory import get_persistence, reset_persistence

load_dotenv()
configure_logging()

logger = structlog.get_logger(__name__)

schema = create_schema()

_services: Optional[BindingServices] = None


def get_services() -> BindingServices:
    """Singleton use cases over the configured persistence backend."""
    global _services

    if _services is None:
        persistence = get_persistence()
        _services = build_services(
            devices=persistence.devices,
            elders=persistence.elders,
            map_users=persistence.map_users,
            activities=persistence.activities,
            notification_points=persistence.notification_points,
            admins=persistence.admins,
            batches=persistence.batches,
            page_size=get_archival_page_size(),
        )

    return _services


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Build services on startup, close the store connection on shutdown."""
    global _services

    get_services()
    logger.info("lifespan.ready", version=__version__, page_size=get_archival_page_size())
    yield

    logger.info("lifespan.shutdown")
    _services = None
    reset_persistence()


app = FastAPI(
    title="Beacon Device Binding Service",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(AuthMiddleware)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/version")
async def version() -> dict[str, str]:
    return {"version": __version__}


async def get_graphql_context(request: Request) -> GraphQLContext:
    """Create GraphQL context for one request."""
    return GraphQLContext(services=get_services(), request=request)


graphql_app: Final[GraphQLRouter[Any, Any]] = GraphQLRouter(
    schema, context_getter=get_graphql_context
)
app.include_router(graphql_app, prefix="/graphql")
