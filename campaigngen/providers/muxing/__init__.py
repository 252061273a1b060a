"""
Video assembly backends.
"""
from .base import BaseMuxer, TimelineClip, AudioTrack
from .moviepy_muxer import MoviePyMuxer, resize_to_fill

__all__ = [
    "BaseMuxer",
    "TimelineClip",
    "AudioTrack",
    "MoviePyMuxer",
    "resize_to_fill",
]
