"""Manifest model: per-track fragment windows and manifest serialization."""

from .hls import HLSManifestFormat
from .playlist import ManifestFormat, Playlist
from .track import Track, make_track_name

__all__ = [
    "HLSManifestFormat",
    "ManifestFormat",
    "Playlist",
    "Track",
    "make_track_name",
]
