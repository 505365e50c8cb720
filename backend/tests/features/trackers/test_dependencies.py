from unittest.mock import AsyncMock

from playerwatch.core.config import Settings
from playerwatch.core.enums import MutationStatus
from playerwatch.features.trackers.dependencies import tracker_store_context
from playerwatch.features.trackers.models import PLACEHOLDER_NAME, Tracker
from playerwatch.features.trackers.repository import InMemoryInstanceStore

STEAM_ID = "76561198000000001"


def make_settings(**overrides):
    return Settings(_env_file=None, steam_api_key=None, **overrides)


async def test_store_without_steam_key_keeps_placeholders():
    """Without a Steam key names stay unresolved and nothing is fetched"""
    notifier = AsyncMock()

    async with tracker_store_context(
        make_settings(), instance_store=InMemoryInstanceStore(), notifier=notifier
    ) as store:
        await store.create_tracker("g", Tracker(tracker_id="t1", name="Raiders"))
        result = await store.add_player("g", "t1", STEAM_ID)
        await store.drain()
        tracker = await store.get_tracker("g", "t1")

    assert result.ok
    assert tracker.players[0].name == PLACEHOLDER_NAME
    notifier.rerender.assert_called_once_with("g", "t1")


async def test_store_persists_to_database(tmp_path):
    settings = make_settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'pw.db'}")

    async with tracker_store_context(settings) as store:
        await store.create_tracker("g", Tracker(tracker_id="t1", name="Raiders"))

    async with tracker_store_context(settings) as store:
        duplicate = await store.create_tracker("g", Tracker(tracker_id="t1", name="x"))
        tracker = await store.get_tracker("g", "t1")

    assert duplicate.status == MutationStatus.CONFLICT
    assert tracker.name == "Raiders"
