"""Transfer Spotify playlists to YouTube."""

__version__ = "0.1.0"
