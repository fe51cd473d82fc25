"""SetlistBot - turn setlist.fm setlists into Spotify playlists."""

__version__ = "1.0.0"
