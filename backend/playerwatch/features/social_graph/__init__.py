"""Friend list cross-references against ban records and server rosters."""
