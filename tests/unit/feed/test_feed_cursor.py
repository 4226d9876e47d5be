"""
Unit tests for FeedCursor.
"""

import pytest

from eventclient.feed.cursor import FeedCursor
from eventclient.feed.models import FeedPage
from tests.fixtures import ScriptedFeed


class TestAdvance:
    def test_defaults_to_beginning(self):
        assert FeedCursor().position == 0

    def test_negative_since_rejected(self):
        with pytest.raises(ValueError):
            FeedCursor(since=-1)

    def test_advance_moves_forward(self):
        cursor = FeedCursor(since=3)

        cursor.advance(4)
        cursor.advance(9)

        assert cursor.position == 9

    @pytest.mark.parametrize("sequence_number", [3, 2])
    def test_advance_rejects_non_increasing(self, sequence_number):
        cursor = FeedCursor(since=3)

        with pytest.raises(ValueError):
            cursor.advance(sequence_number)

        assert cursor.position == 3

    def test_on_advance_hook(self):
        saved: list[int] = []
        cursor = FeedCursor(since=0, on_advance=saved.append)

        cursor.advance(1)
        cursor.advance(5)

        assert saved == [1, 5]


class TestIterPages:
    @pytest.mark.asyncio
    async def test_eager_fetches_until_no_more(self):
        feed = ScriptedFeed(range(1, 8), page_size=3)
        cursor = FeedCursor()

        pages = [page async for page in cursor.iter_pages(feed)]

        assert [len(p.entries) for p in pages] == [3, 3, 1]
        assert feed.calls == [0, 3, 6]

    @pytest.mark.asyncio
    async def test_non_eager_fetches_one_page(self):
        feed = ScriptedFeed(range(1, 8), page_size=3)

        pages = [page async for page in FeedCursor().iter_pages(feed, eager=False)]

        assert len(pages) == 1
        assert feed.calls == [0]

    @pytest.mark.asyncio
    async def test_reads_past_unacknowledged_entries(self):
        feed = ScriptedFeed(range(1, 5), page_size=2)
        cursor = FeedCursor()

        pages = [page async for page in cursor.iter_pages(feed)]

        # The cursor itself was never advanced
        assert cursor.position == 0
        assert feed.calls == [0, 2]
        assert len(pages) == 2

    @pytest.mark.asyncio
    async def test_empty_page(self):
        feed = ScriptedFeed([])

        pages = [page async for page in FeedCursor(since=10).iter_pages(feed)]

        assert pages == [FeedPage(current_sequence_number=0)]

    @pytest.mark.asyncio
    async def test_stops_when_page_makes_no_progress(self):
        calls: list[int] = []

        async def stuck(since: int) -> FeedPage:
            calls.append(since)
            return FeedPage(has_more=True)

        pages = [page async for page in FeedCursor(since=0).iter_pages(stuck)]

        assert len(pages) == 1
        assert calls == [0]
