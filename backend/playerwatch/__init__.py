"""
Playerwatch package.

Tracks players of game servers by their Steam, BattleMetrics and Discord
identifiers, resolves their names in the background and cross-references an
account's friends with ban records and server rosters.
"""

__version__ = "1.0.0"
