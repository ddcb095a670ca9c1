"""SquadFeed: squad-scoped post feeds with optimistic voting."""

__version__ = "0.1.0"
