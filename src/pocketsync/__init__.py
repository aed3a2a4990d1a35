"""pocketsync - local-first personal finance records with manual cloud backup."""

__version__ = "0.1.0"
