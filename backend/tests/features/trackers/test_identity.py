import pytest

from playerwatch.features.trackers.identity import (
    Conflict,
    IdentityResolver,
    Insertion,
    ParsedIdentity,
)
from playerwatch.features.trackers.models import PLACEHOLDER_NAME, Player, Tracker
from playerwatch.features.trackers.roster import RosterCache

STEAM_A = "76561198000000001"
STEAM_B = "76561198000000002"
STEAM_C = "76561198000000003"


@pytest.fixture
def resolver():
    return IdentityResolver()


@pytest.fixture
def tracker():
    return Tracker(tracker_id="t1", name="Raiders")


@pytest.mark.parametrize(
    "token, expected",
    [
        (STEAM_A, ParsedIdentity(steam_id=STEAM_A)),
        ("123456", ParsedIdentity(battlemetrics_id="123456")),
        ("1234567890123456", ParsedIdentity(battlemetrics_id="1234567890123456")),
        (" " + STEAM_A, ParsedIdentity(battlemetrics_id=" " + STEAM_A)),
        ("   ", ParsedIdentity()),
        ("", ParsedIdentity()),
    ],
)
def test_classify_by_length(resolver, token, expected):
    assert resolver.classify(token) == expected


@pytest.mark.parametrize(
    "line, expected",
    [
        (f"{STEAM_A}/987", ParsedIdentity(steam_id=STEAM_A, battlemetrics_id="987")),
        (f"987/{STEAM_A}", ParsedIdentity(steam_id=STEAM_A, battlemetrics_id="987")),
        (f" {STEAM_A} / 987 ", ParsedIdentity(steam_id=STEAM_A, battlemetrics_id="987")),
        ("111/222", ParsedIdentity(battlemetrics_id="111")),
        (f"/{STEAM_A}", ParsedIdentity(steam_id=STEAM_A)),
        ("987/", ParsedIdentity(battlemetrics_id="987")),
        ("/", ParsedIdentity()),
    ],
)
def test_parse_combined(resolver, line, expected):
    assert resolver.parse_combined(line) == expected


def test_parse_bulk_drops_blanks_and_duplicates(resolver):
    """Existing players and repeats within the text are skipped"""
    existing = [Player(name="Known", steam_id=STEAM_A)]
    text = "\n".join(
        [
            STEAM_A,
            "",
            f"{STEAM_B}/555",
            "   ",
            "777",
            STEAM_B,
            "777",
            "/",
            f"888/{STEAM_C}",
        ]
    )

    entries = resolver.parse_bulk(text, existing)

    assert entries == [
        ParsedIdentity(steam_id=STEAM_B, battlemetrics_id="555"),
        ParsedIdentity(battlemetrics_id="777"),
        ParsedIdentity(steam_id=STEAM_C, battlemetrics_id="888"),
    ]


def test_add_player_steam_uses_placeholder(resolver, tracker):
    outcome = resolver.add_player(tracker, STEAM_A, discord_id="42")

    assert isinstance(outcome, Insertion)
    assert outcome.index == 0
    assert outcome.needs_name_fetch
    assert tracker.players[0] == Player(
        name=PLACEHOLDER_NAME, steam_id=STEAM_A, discord_id="42"
    )


def test_add_player_battlemetrics_name_from_roster(resolver, tracker):
    roster = RosterCache("srv", {"555": "Alice"})

    outcome = resolver.add_player(tracker, "555", roster=roster)

    assert isinstance(outcome, Insertion)
    assert outcome.player.name == "Alice"
    assert not outcome.needs_name_fetch


def test_add_player_battlemetrics_not_cached(resolver, tracker):
    roster = RosterCache("srv", {"555": "Alice"})

    outcome = resolver.add_player(tracker, "556", roster=roster)

    assert outcome.needs_name_fetch


def test_add_player_conflict_reports_existing_index(resolver, tracker):
    resolver.add_player(tracker, "555")
    resolver.add_player(tracker, STEAM_A)

    outcome = resolver.add_player(tracker, STEAM_A)

    assert outcome == Conflict(existing_index=1)
    assert len(tracker.players) == 2


def test_battlemetrics_id_of_steam_player_is_not_a_conflict(resolver, tracker):
    """A BattleMetrics key only clashes with players lacking a Steam id"""
    tracker.players.append(Player(name="A", steam_id=STEAM_A, battlemetrics_id="555"))

    outcome = resolver.add_player(tracker, "555")

    assert isinstance(outcome, Insertion)


def test_add_player_blank_is_none(resolver, tracker):
    assert resolver.add_player(tracker, "   ") is None
    assert tracker.players == []


def test_add_parsed_uses_roster_name_with_steam_id(resolver, tracker):
    roster = RosterCache("srv", {"555": "Alice"})

    outcome = resolver.add_parsed(
        tracker, ParsedIdentity(steam_id=STEAM_A, battlemetrics_id="555"), roster=roster
    )

    assert outcome.player.name == "Alice"


def test_remove_player(resolver, tracker):
    resolver.add_player(tracker, STEAM_A)
    resolver.add_player(tracker, "555")

    assert resolver.remove_player(tracker, STEAM_A) == 1
    assert [p.battlemetrics_id for p in tracker.players] == ["555"]


def test_remove_player_without_match_is_noop(resolver, tracker):
    resolver.add_player(tracker, "555")

    assert resolver.remove_player(tracker, STEAM_B) == 0
    assert resolver.remove_player(tracker, "") == 0
    assert len(tracker.players) == 1


def test_find_index(resolver):
    players = [Player(battlemetrics_id="1"), Player(steam_id=STEAM_A)]

    assert resolver.find_index(players, ParsedIdentity(steam_id=STEAM_A)) == 1
    assert resolver.find_index(players, ParsedIdentity(battlemetrics_id="2")) is None
    assert resolver.find_index(players, ParsedIdentity()) is None
