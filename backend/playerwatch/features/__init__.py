"""Feature packages: trackers and social graph."""
