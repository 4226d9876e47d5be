"""
Feed consumption for eventclient.

This module provides:
- FeedClient: Page fetches, eager drains and background subscriptions
- FeedRequest: Which feed to read and how
- FeedCursor: Consumer position on a feed
- FeedPump: Delivery of entries to a handler
- EntryDirective: What a handler returns to acknowledge or retry an entry
- FeedEntry, FeedPage, FeedInfo: Feed data structures
"""

from eventclient.feed.client import FeedClient
from eventclient.feed.cursor import FeedCursor, PageFetcher
from eventclient.feed.models import FeedEntry, FeedInfo, FeedPage
from eventclient.feed.outcome import Advance, EntryDirective, EntryOutcome, Fail, Retry
from eventclient.feed.pump import DrainResult, FeedHandler, FeedPump
from eventclient.feed.request import FeedRequest

__all__ = [
    # Client
    "FeedClient",
    "FeedRequest",
    # Cursor and pump
    "FeedCursor",
    "PageFetcher",
    "FeedPump",
    "FeedHandler",
    "DrainResult",
    # Outcomes
    "EntryDirective",
    "EntryOutcome",
    "Advance",
    "Retry",
    "Fail",
    # Models
    "FeedEntry",
    "FeedInfo",
    "FeedPage",
]
