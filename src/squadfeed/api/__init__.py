"""HTTP API for SquadFeed."""
