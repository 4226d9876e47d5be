"""
Backends for eventclient.

This module provides:
- Backend: Abstract interface the client core talks to
- InMemoryBackend: Process-local backend for tests and development
- HttpBackend: REST API backend using httpx
"""

from eventclient.backends.interface import ALL_FEED, Backend
from eventclient.backends.in_memory import InMemoryBackend
from eventclient.backends.http import HttpBackend

__all__ = [
    "ALL_FEED",
    "Backend",
    "InMemoryBackend",
    "HttpBackend",
]
