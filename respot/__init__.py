"""Building blocks for a Spotify Connect style audio player."""

__version__ = "0.1.0"