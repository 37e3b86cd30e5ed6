"""
Unit Tests for the Offset Pagination Driver

Run with:
    pytest tests/unit/test_pagination.py -v
"""

import pytest

from core.exceptions import TransportError
from exchanges.gateio.pagination import DEFAULT_PAGE_SIZE, paginate


def page_source(sizes):
    """Serve pages of the given sizes and record every (offset, limit) asked for."""
    calls = []

    async def fetch_page(offset, limit):
        calls.append((offset, limit))
        size = sizes[len(calls) - 1]
        return list(range(offset, offset + size))

    return fetch_page, calls


def identity(records):
    return list(records)


class TestPaginate:
    """Tests for paginate"""

    def test_default_page_size(self):
        assert DEFAULT_PAGE_SIZE == 100

    @pytest.mark.asyncio
    async def test_stops_after_short_page(self):
        fetch_page, calls = page_source([100, 100, 37])

        records = await paginate(fetch_page, identity)

        assert calls == [(0, 100), (100, 100), (200, 100)]
        assert len(records) == 237

    @pytest.mark.asyncio
    async def test_exact_multiple_needs_trailing_empty_page(self):
        fetch_page, calls = page_source([100, 100, 100, 0])

        records = await paginate(fetch_page, identity)

        assert len(calls) == 4
        assert len(records) == 300
        assert records == list(range(300))

    @pytest.mark.asyncio
    async def test_empty_first_page(self):
        fetch_page, calls = page_source([0])

        assert await paginate(fetch_page, identity) == []
        assert calls == [(0, 100)]

    @pytest.mark.asyncio
    async def test_offset_advances_by_page_size_not_translated_count(self):
        fetch_page, calls = page_source([10, 10, 3])

        records = await paginate(fetch_page, lambda page: [r for r in page if r % 2 == 0], page_size=10)

        assert [offset for offset, _ in calls] == [0, 10, 20]
        assert records == [r for r in range(23) if r % 2 == 0]

    @pytest.mark.asyncio
    async def test_error_discards_partial_result(self):
        calls = []

        async def fetch_page(offset, limit):
            calls.append(offset)
            if offset == 100:
                raise TransportError("connection reset", "gateio")
            return list(range(limit))

        with pytest.raises(TransportError):
            await paginate(fetch_page, identity)

        assert calls == [0, 100]

    @pytest.mark.asyncio
    async def test_translation_error_propagates(self):
        fetch_page, _ = page_source([5])

        def translate(page):
            raise ValueError("bad record")

        with pytest.raises(ValueError, match="bad record"):
            await paginate(fetch_page, translate, page_size=10)

    @pytest.mark.asyncio
    async def test_page_size_must_be_positive(self):
        fetch_page, calls = page_source([])

        with pytest.raises(ValueError):
            await paginate(fetch_page, identity, page_size=0)
        assert calls == []
