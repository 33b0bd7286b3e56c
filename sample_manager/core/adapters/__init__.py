"""
Adapters - bridges between external formats and domain types.

- loader.py: encoded audio (files, bytes) -> AudioBuffer
"""

from .loader import AudioLoader, MIME_TYPES

__all__ = [
    "AudioLoader",
    "MIME_TYPES",
]
