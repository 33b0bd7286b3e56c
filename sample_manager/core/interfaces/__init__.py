"""
Interfaces - Protocols for dependency injection.

- byte_store_protocol.py: storage medium behind SampleCache
"""

from .byte_store_protocol import ByteStoreProtocol

__all__ = [
    "ByteStoreProtocol",
]
