"""Spotify API Explorer service"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("spotify-explorer")
except PackageNotFoundError:
    __version__ = "dev"
