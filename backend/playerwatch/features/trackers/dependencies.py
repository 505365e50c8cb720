"""Dependencies for the trackers feature.

Builds the tracker store and its collaborators from ``Settings``. Clients
opened here are closed when the context exits.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Optional

import structlog

from playerwatch.core.batch import BatchClient
from playerwatch.core.battlemetrics import BattlemetricsClient
from playerwatch.core.config import Settings, get_global_settings
from playerwatch.core.database import create_database_manager
from playerwatch.core.steam_api import SteamAPIClient
from playerwatch.features.social_graph.gateway import SteamGateway
from playerwatch.features.social_graph.service import SocialGraphScraper
from .enrichment import EnrichmentPipeline
from .identity import IdentityResolver
from .repository import SQLAlchemyInstanceStore
from .roster import RosterRegistry
from .service import TrackerStore
from .writer import TrackerWriteQueue

if TYPE_CHECKING:
    from playerwatch.protocols import InstanceStore, MemberDirectory, Notifier

logger = structlog.get_logger(__name__)


def get_steam_client(settings: Settings) -> Optional[SteamAPIClient]:
    """Steam client for the configured key, ``None`` when no key is set."""
    if not settings.steam_enabled:
        logger.warning("STEAM_API_KEY not set, Steam lookups disabled")
        return None
    return SteamAPIClient(
        api_key=settings.steam_api_key,
        base_url=settings.steam_api_base_url,
        timeout=settings.request_timeout_seconds,
    )


def get_battlemetrics_client(settings: Settings) -> BattlemetricsClient:
    return BattlemetricsClient(
        api_key=settings.battlemetrics_api_key,
        base_url=settings.battlemetrics_api_base_url,
        timeout=settings.request_timeout_seconds,
    )


def get_batch_client(settings: Settings) -> BatchClient:
    return BatchClient(
        chunk_size=settings.steam_batch_size,
        timeout=settings.request_timeout_seconds,
        max_concurrency=settings.batch_max_concurrency,
    )


@asynccontextmanager
async def tracker_store_context(
    settings: Optional[Settings] = None,
    *,
    instance_store: Optional["InstanceStore"] = None,
    rosters: Optional[RosterRegistry] = None,
    notifier: Optional["Notifier"] = None,
    member_directory: Optional["MemberDirectory"] = None,
) -> AsyncGenerator[TrackerStore, None]:
    """Build a fully wired ``TrackerStore``.

    :param settings: Settings to use, defaults to the global settings
    :param instance_store: State persistence; a SQLAlchemy store on
                           ``settings.database_url`` when omitted
    :param rosters: Roster registry shared with the roster polling job
    :param notifier: Presentation layer re-render hook
    :param member_directory: Discord member lookup for player edits
    """
    settings = settings or get_global_settings()
    rosters = rosters if rosters is not None else RosterRegistry()

    db_manager = None
    if instance_store is None:
        db_manager = create_database_manager(settings.database_url)
        await db_manager.create_all()
        instance_store = SQLAlchemyInstanceStore(db_manager)

    steam_client = get_steam_client(settings)
    battlemetrics_client = get_battlemetrics_client(settings)
    gateway = SteamGateway(steam_client)
    batch_client = get_batch_client(settings)
    writer = TrackerWriteQueue()
    timeout = settings.request_timeout_seconds

    enrichment = EnrichmentPipeline(
        instance_store,
        writer,
        summaries=gateway,
        monitoring_names=battlemetrics_client,
        rosters=rosters,
        notifier=notifier,
        batch_client=batch_client,
        timeout=timeout,
    )
    scraper = SocialGraphScraper(
        friends=gateway,
        summaries=gateway,
        bans=gateway,
        batch_client=batch_client,
        timeout=timeout,
    )
    store = TrackerStore(
        instance_store,
        resolver=IdentityResolver(),
        enrichment=enrichment,
        scraper=scraper,
        rosters=rosters,
        writer=writer,
        notifier=notifier,
        server_lookup=battlemetrics_client,
        member_directory=member_directory,
        timeout=timeout,
    )

    logger.info(
        "Tracker store ready",
        steam_enabled=gateway.enabled,
        persistent=db_manager is not None,
    )
    try:
        yield store
    finally:
        await store.aclose()
        if steam_client is not None:
            await steam_client.close()
        await battlemetrics_client.close()
        if db_manager is not None:
            await db_manager.close()
