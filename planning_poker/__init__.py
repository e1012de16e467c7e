"""Planning Poker real-time estimation server."""

__version__ = "0.1.0"
