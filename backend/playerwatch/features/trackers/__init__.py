"""Tracked players: identity rules, persistence, enrichment and the tracker store."""
