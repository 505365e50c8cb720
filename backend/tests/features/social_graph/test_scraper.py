from unittest.mock import AsyncMock

import pytest

from playerwatch.core.enums import FriendListStatus
from playerwatch.features.social_graph.gateway import SteamGateway
from playerwatch.features.social_graph.models import BanRecord, PlayerSummary
from playerwatch.features.social_graph.schemas import UNKNOWN_NAME
from playerwatch.features.social_graph.service import SocialGraphScraper

STEAM_ID = "76561198000000001"


def friend(n):
    return f"7656119800001{n:04d}"


@pytest.fixture
def mock_gateway():
    gateway = AsyncMock(spec=SteamGateway)
    gateway.lookup_friends.return_value = []
    gateway.lookup_bans.return_value = {}
    gateway.lookup_summaries.return_value = {}
    return gateway


@pytest.fixture
def scraper(mock_gateway):
    return SocialGraphScraper(
        friends=mock_gateway, summaries=mock_gateway, bans=mock_gateway
    )


async def test_private_friend_list(scraper, mock_gateway):
    mock_gateway.lookup_friends.return_value = FriendListStatus.PRIVATE

    report = await scraper.compute_ban_report(STEAM_ID)

    assert report.is_private is True
    assert report.total_friends == 0
    assert report.friends_with_bans == []
    mock_gateway.lookup_bans.assert_not_called()


async def test_friend_list_failure_is_empty_not_private(scraper, mock_gateway):
    mock_gateway.lookup_friends.side_effect = RuntimeError("steam down")

    assert await scraper.get_friend_list(STEAM_ID) == []
    report = await scraper.compute_ban_report(STEAM_ID)
    assert report.is_private is False
    assert report.total_friends == 0


async def test_ban_report_sorted_by_most_recent_ban(scraper, mock_gateway):
    """Only banned friends get their names looked up"""
    friends = [friend(1), friend(2), friend(3), friend(4)]
    mock_gateway.lookup_friends.return_value = friends
    mock_gateway.lookup_bans.return_value = {
        friend(1): BanRecord(steam_id=friend(1), vac_banned=True, vac_bans=1, days_since_last_ban=50),
        friend(2): BanRecord(steam_id=friend(2), game_bans=2, days_since_last_ban=3),
        friend(3): BanRecord(steam_id=friend(3)),
        friend(4): BanRecord(steam_id=friend(4), community_banned=True, days_since_last_ban=12),
    }
    mock_gateway.lookup_summaries.return_value = {
        friend(1): PlayerSummary(steam_id=friend(1), display_name="One"),
        friend(2): PlayerSummary(steam_id=friend(2), display_name="Two"),
    }

    report = await scraper.compute_ban_report(STEAM_ID)

    assert report.total_friends == 4
    assert [entry.days_since_last_ban for entry in report.friends_with_bans] == [3, 12, 50]
    assert [entry.name for entry in report.friends_with_bans] == ["Two", UNKNOWN_NAME, "One"]
    mock_gateway.lookup_summaries.assert_called_once_with([friend(1), friend(2), friend(4)])


async def test_ban_report_without_banned_friends(scraper, mock_gateway):
    mock_gateway.lookup_friends.return_value = [friend(1)]
    mock_gateway.lookup_bans.return_value = {friend(1): BanRecord(steam_id=friend(1))}

    report = await scraper.compute_ban_report(STEAM_ID)

    assert report.total_friends == 1
    assert report.friends_with_bans == []
    mock_gateway.lookup_summaries.assert_not_called()


async def test_ban_report_survives_failed_chunk(mock_gateway):
    """A failing ban chunk only drops that chunk's friends"""
    friends = [friend(n) for n in range(150)]
    mock_gateway.lookup_friends.return_value = friends

    async def lookup_bans(steam_ids):
        if friend(120) in steam_ids:
            raise RuntimeError("chunk failed")
        return {
            steam_id: BanRecord(steam_id=steam_id, vac_banned=True)
            for steam_id in steam_ids
        }

    mock_gateway.lookup_bans.side_effect = lookup_bans
    scraper = SocialGraphScraper(
        friends=mock_gateway, summaries=mock_gateway, bans=mock_gateway
    )

    report = await scraper.compute_ban_report(STEAM_ID)

    assert report.total_friends == 150
    assert len(report.friends_with_bans) == 100


async def test_presence_report_matches_names_ignoring_case(scraper, mock_gateway):
    mock_gateway.lookup_friends.return_value = [friend(1), friend(2), friend(3)]
    mock_gateway.lookup_summaries.return_value = {
        friend(1): PlayerSummary(steam_id=friend(1), display_name="Alice"),
        friend(2): PlayerSummary(steam_id=friend(2), display_name="Mallory"),
        friend(3): PlayerSummary(steam_id=friend(3), display_name="BOB"),
    }

    report = await scraper.compute_presence_report(STEAM_ID, ["bob", "ALICE", "Eve"])

    assert report.is_private is False
    assert [(f.steam_id, f.name) for f in report.friends_on_server] == [
        (friend(1), "Alice"),
        (friend(3), "BOB"),
    ]


async def test_presence_report_empty_roster_skips_lookups(scraper, mock_gateway):
    mock_gateway.lookup_friends.return_value = [friend(1)]

    report = await scraper.compute_presence_report(STEAM_ID, [])

    assert report.friends_on_server == []
    mock_gateway.lookup_summaries.assert_not_called()


async def test_presence_report_private(scraper, mock_gateway):
    mock_gateway.lookup_friends.return_value = FriendListStatus.PRIVATE

    report = await scraper.compute_presence_report(STEAM_ID, ["Alice"])

    assert report.is_private is True


async def test_scrape_runs_both_reports(scraper, mock_gateway):
    mock_gateway.lookup_friends.return_value = FriendListStatus.PRIVATE

    report = await scraper.scrape(STEAM_ID, ["Alice"], "Target")

    assert report.player_name == "Target"
    assert report.is_private
    assert mock_gateway.lookup_friends.call_count == 2
