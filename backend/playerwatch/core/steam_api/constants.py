"""Steam Web API constants."""

# SteamID64 rendered as decimal digits, e.g. 76561198000000001
STEAMID64_LENGTH = 17

# Maximum ids accepted by GetPlayerSummaries / GetPlayerBans per request
STEAM_BATCH_SIZE = 100

DEFAULT_TIMEOUT_SECONDS = 10.0


class SteamEndpoints:
    """Relative paths of the ISteamUser endpoints in use."""

    PLAYER_SUMMARIES = "/ISteamUser/GetPlayerSummaries/v2/"
    FRIEND_LIST = "/ISteamUser/GetFriendList/v1/"
    PLAYER_BANS = "/ISteamUser/GetPlayerBans/v1/"
