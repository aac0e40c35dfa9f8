"""MemeHub API - meme sharing with votes, badges and leaderboards."""

__version__ = "0.1.0"
