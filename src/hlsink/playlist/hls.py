"""
HLS (HTTP Live Streaming) manifest serialization.

Produces a master playlist referencing one media playlist per track. Media
playlists use fragmented-MP4 segments, so every one of them carries an
``#EXT-X-MAP`` pointing at the track's init file.
"""

import math
from typing import Dict, List

from hlsink.models import ContentType
from hlsink.playlist.playlist import Playlist
from hlsink.playlist.track import Track

HLS_VERSION = 7
AUDIO_GROUP_ID = "audio"
DEFAULT_BANDWIDTH = 2560000
VIDEO_CODECS = "avc1.42e00a"
AUDIO_CODECS = "mp4a.40.2"


class HLSManifestFormat:
    """Serializes a playlist into an HLS master playlist plus media playlists."""

    extension = ".m3u8"

    def master_name(self, playlist: Playlist) -> str:
        return f"{playlist.name}{self.extension}"

    def track_manifest_name(self, playlist: Playlist, track: Track) -> str:
        return f"{playlist.name}_{track.track_name}{self.extension}"

    def serialize(self, playlist: Playlist) -> Dict[str, str]:
        # Media playlists come first so the master never references one
        # that has not been written yet
        manifests = {
            self.track_manifest_name(playlist, track): self.serialize_track(track)
            for track in playlist.tracks
        }
        manifests[self.master_name(playlist)] = self.serialize_master(playlist)
        return manifests

    def serialize_master(self, playlist: Playlist) -> str:
        lines = [
            "#EXTM3U",
            f"#EXT-X-VERSION:{HLS_VERSION}",
            "#EXT-X-INDEPENDENT-SEGMENTS",
        ]

        audio_tracks = [t for t in playlist.tracks if t.content_type == ContentType.AUDIO]
        video_tracks = [t for t in playlist.tracks if t.content_type != ContentType.AUDIO]

        for index, track in enumerate(audio_tracks):
            default = "YES" if index == 0 else "NO"
            lines.append(
                f'#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="{AUDIO_GROUP_ID}",'
                f'NAME="{track.track_name}",DEFAULT={default},AUTOSELECT=YES,'
                f'URI="{self.track_manifest_name(playlist, track)}"'
            )

        if video_tracks:
            for track in video_tracks:
                codecs = VIDEO_CODECS
                attributes = f"BANDWIDTH={DEFAULT_BANDWIDTH}"
                if track.content_type == ContentType.MUXED:
                    codecs = f"{VIDEO_CODECS},{AUDIO_CODECS}"
                elif audio_tracks:
                    codecs = f"{VIDEO_CODECS},{AUDIO_CODECS}"
                    attributes += f',AUDIO="{AUDIO_GROUP_ID}"'
                lines.append(f'#EXT-X-STREAM-INF:{attributes},CODECS="{codecs}"')
                lines.append(self.track_manifest_name(playlist, track))
        else:
            for track in audio_tracks:
                lines.append(
                    f'#EXT-X-STREAM-INF:BANDWIDTH={DEFAULT_BANDWIDTH},'
                    f'CODECS="{AUDIO_CODECS}"'
                )
                lines.append(self.track_manifest_name(playlist, track))

        return "\n".join(lines) + "\n"

    def serialize_track(self, track: Track) -> str:
        lines: List[str] = [
            "#EXTM3U",
            f"#EXT-X-VERSION:{HLS_VERSION}",
            f"#EXT-X-TARGETDURATION:{max(1, math.ceil(track.target_duration))}",
            f"#EXT-X-MEDIA-SEQUENCE:{track.media_sequence}",
            "#EXT-X-DISCONTINUITY-SEQUENCE:0",
            f'#EXT-X-MAP:URI="{track.init_name}"',
        ]

        for fragment in track.fragments:
            lines.append(f"#EXTINF:{fragment.duration:.3f},")
            lines.append(fragment.name)

        if track.finished:
            lines.append("#EXT-X-ENDLIST")

        return "\n".join(lines) + "\n"
